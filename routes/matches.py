from typing import List

from fastapi import APIRouter, Depends

from database import get_db
from schemas.profile import MatchResponse
from store import Store
from utils.route_helpers import get_current_user_id

router = APIRouter(prefix="/matches", tags=["matches"])


def find_matches(store: Store) -> List[MatchResponse]:
    """Profiles sharing at least one joined city with the actor, by username"""
    own = {m["city_id"] for m in store.select("city_members", where={"profile_id": store.actor_id})}
    if not own:
        return []
    shared = {}
    for member in store.select("city_members", where={"city_id": list(own)}, order_by="joined_at"):
        if member["profile_id"] != store.actor_id:
            shared.setdefault(member["profile_id"], []).append(member["city_id"])
    profiles = store.select("profiles", where={"id": list(shared)}, order_by="username")
    return [MatchResponse(**p, shared_city_ids=shared[p["id"]]) for p in profiles]


@router.get("/", response_model=List[MatchResponse])
def list_matches(current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        return find_matches(Store(conn, current_user_id))
