from typing import List, Optional

from fastapi import APIRouter, Depends

from database import get_db
from file_utils import delete_object_by_url, ensure_owned_object
from routes.comments import PLAN_COMMENTS, add_comment, edit_comment, list_comments, remove_comment
from schemas import TravelPlanCreate, TravelPlanUpdate, TravelPlanResponse, TravelPlanDetailResponse
from schemas.shared import CommentCreate, CommentUpdate, CommentResponse
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id, usernames

router = APIRouter(prefix="/travel-plans", tags=["travel plans"])


def plan_responses(store: Store, plans: List[dict]) -> List[TravelPlanResponse]:
    names = usernames(store, [p["user_id"] for p in plans])
    counts = {}
    for c in store.select("travel_plan_comments", where={"plan_id": [p["id"] for p in plans]}):
        counts[c["plan_id"]] = counts.get(c["plan_id"], 0) + 1
    return [
        TravelPlanResponse(**p, author_username=names.get(p["user_id"]), comment_count=counts.get(p["id"], 0))
        for p in plans
    ]


@router.get("/", response_model=List[TravelPlanResponse])
def list_plans(
    city_id: Optional[str] = None,
    user_id: Optional[str] = None,
    current_user_id: Optional[str] = Depends(get_optional_user_id)
):
    where = {}
    if city_id:
        where["city_id"] = city_id
    if user_id:
        where["user_id"] = user_id
    with get_db() as conn:
        store = Store(conn, current_user_id)
        return plan_responses(store, store.select("travel_plans", where=where, order_by="start_date"))


@router.post("/", status_code=201, response_model=TravelPlanResponse)
def create_plan(plan: TravelPlanCreate, current_user_id: str = Depends(get_current_user_id)):
    """Create a plan; ``images`` are URLs returned by the upload endpoint, kept in order"""
    for url in plan.images:
        ensure_owned_object(current_user_id, url)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=plan.city_id)
        row = store.insert("travel_plans", {
            **plan.model_dump(),
            "start_date": plan.start_date.isoformat(),
            "end_date": plan.end_date.isoformat(),
            "user_id": current_user_id,
        })
        conn.commit()
        return plan_responses(store, [row])[0]


@router.get("/{plan_id}", response_model=TravelPlanDetailResponse)
def get_plan(plan_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        plan = store.get_or_404("travel_plans", label="Travel plan", id=plan_id)
        return TravelPlanDetailResponse(
            **plan_responses(store, [plan])[0].model_dump(),
            comments=list_comments(store, PLAN_COMMENTS, plan_id),
        )


@router.put("/{plan_id}", response_model=TravelPlanResponse)
def update_plan(plan_id: str, plan: TravelPlanUpdate, current_user_id: str = Depends(get_current_user_id)):
    changes = {k: v for k, v in plan.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
    for field in ("start_date", "end_date"):
        if field in changes:
            changes[field] = changes[field].isoformat()
    for url in changes.get("images", []):
        ensure_owned_object(current_user_id, url)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        existing = store.get_or_404("travel_plans", label="Travel plan", id=plan_id)
        # valid_date_range is enforced by the table on the merged row
        row = store.update("travel_plans", {"id": plan_id}, changes)
        conn.commit()
        response = plan_responses(store, [row])[0]
    if "images" in changes:
        for url in set(existing["images"]) - set(row["images"]):
            delete_object_by_url(current_user_id, url)
    return response


@router.delete("/{plan_id}", status_code=204)
def delete_plan(plan_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        plan = store.get_or_404("travel_plans", label="Travel plan", id=plan_id)
        store.delete("travel_plans", id=plan_id)
        conn.commit()
    for url in plan["images"]:
        delete_object_by_url(current_user_id, url)


@router.get("/{plan_id}/comments", response_model=List[CommentResponse])
def get_plan_comments(plan_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("travel_plans", label="Travel plan", id=plan_id)
        return list_comments(store, PLAN_COMMENTS, plan_id)


@router.post("/{plan_id}/comments", status_code=201, response_model=CommentResponse)
def create_plan_comment(plan_id: str, comment: CommentCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = add_comment(Store(conn, current_user_id), PLAN_COMMENTS, plan_id, comment)
        conn.commit()
        return response


@router.put("/comments/{comment_id}", response_model=CommentResponse)
def update_plan_comment(comment_id: str, comment: CommentUpdate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = edit_comment(Store(conn, current_user_id), PLAN_COMMENTS, comment_id, comment)
        conn.commit()
        return response


@router.delete("/comments/{comment_id}", status_code=204)
def delete_plan_comment(comment_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        remove_comment(Store(conn, current_user_id), PLAN_COMMENTS, comment_id)
        conn.commit()
