import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import init_db
from routes.auth import router as auth_router
from routes.profile import router as profile_router
from routes.cities import router as cities_router
from routes.cdn import router as cdn_router
from routes.posts import router as posts_router
from routes.comments import router as comments_router
from routes.events import router as events_router
from routes.travel_plans import router as travel_plans_router
from routes.vlogs import router as vlogs_router
from routes.chats import router as chats_router
from routes.matches import router as matches_router
from routes.wiki import router as wiki_router
from routes.admin import router as admin_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize database
    init_db()
    yield


app = FastAPI(title="roamcircle", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(cities_router)
app.include_router(wiki_router)
app.include_router(cdn_router)
app.include_router(posts_router)
app.include_router(comments_router)
app.include_router(events_router)
app.include_router(travel_plans_router)
app.include_router(vlogs_router)
app.include_router(chats_router)
app.include_router(matches_router)
app.include_router(admin_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
