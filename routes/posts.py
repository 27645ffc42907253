import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from database import get_db
from file_utils import delete_object_by_url, ensure_owned_object
from routes.comments import list_post_comments
from schemas import PostCreate, PostUpdate, PostResponse, PostResponseWithComments, PostVoteRequest, PostVoteResponse
from schemas.shared import Flair
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id
from voting import POST_VOTES, current_choice, toggle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


def post_responses(store: Store, posts: List[dict]) -> List[PostResponse]:
    """Attach author, comment count and the actor's vote to post rows"""
    if not posts:
        return []
    post_ids = [p["id"] for p in posts]
    authors = {
        a["id"]: a for a in store.select("profiles", where={"id": list({p["author_id"] for p in posts})})
    }
    comment_counts = {}
    for c in store.select("comments", where={"post_id": post_ids}):
        comment_counts[c["post_id"]] = comment_counts.get(c["post_id"], 0) + 1
    votes = {}
    if store.actor_id:
        votes = {
            v["post_id"]: v["vote_type"]
            for v in store.select("post_votes", where={"user_id": store.actor_id, "post_id": post_ids})
        }
    responses = []
    for p in posts:
        author = authors.get(p["author_id"], {})
        responses.append(PostResponse(
            **p,
            author_username=author.get("username"),
            author_role=author.get("role"),
            user_vote=votes.get(p["id"]),
            comment_count=comment_counts.get(p["id"], 0),
        ))
    return responses


@router.get("/", response_model=List[PostResponse])
def list_posts(
    city_id: str,
    flair: Optional[Flair] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user_id: Optional[str] = Depends(get_optional_user_id)
):
    """Posts of a city, newest first"""
    where = {"city_id": city_id}
    if flair:
        where["flair"] = flair
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=city_id)
        posts = store.select("posts", where=where, order_by="created_at DESC", limit=limit, offset=offset)
        return post_responses(store, posts)


@router.post("/", status_code=201, response_model=PostResponse)
def create_post(post: PostCreate, current_user_id: str = Depends(get_current_user_id)):
    ensure_owned_object(current_user_id, post.image_url)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=post.city_id)
        row = store.insert("posts", {**post.model_dump(), "author_id": current_user_id})
        conn.commit()
        return post_responses(store, [row])[0]


@router.get("/{post_id}", response_model=PostResponseWithComments)
def get_post(post_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        post = store.get_or_404("posts", label="Post", id=post_id)
        response = post_responses(store, [post])[0]
        return PostResponseWithComments(**response.model_dump(), comments=list_post_comments(store, post_id))


@router.put("/{post_id}", response_model=PostResponse)
def update_post(post_id: str, post: PostUpdate, current_user_id: str = Depends(get_current_user_id)):
    changes = {k: v for k, v in post.model_dump(exclude_unset=True).items() if v is not None or k == "image_url"}
    if "image_url" in changes:
        ensure_owned_object(current_user_id, changes["image_url"])
    with get_db() as conn:
        store = Store(conn, current_user_id)
        existing = store.get_or_404("posts", label="Post", id=post_id)
        row = store.update("posts", {"id": post_id}, changes)
        conn.commit()
    if "image_url" in changes and existing["image_url"] != row["image_url"]:
        delete_object_by_url(current_user_id, existing["image_url"])
    with get_db() as conn:
        return post_responses(Store(conn, current_user_id), [row])[0]


@router.delete("/{post_id}", status_code=204)
def delete_post(post_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        post = store.get_or_404("posts", label="Post", id=post_id)
        store.delete("posts", id=post_id)
        conn.commit()
    delete_object_by_url(current_user_id, post["image_url"])


@router.get("/{post_id}/vote", response_model=PostVoteResponse)
def get_vote(post_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        post = store.get_or_404("posts", label="Post", id=post_id)
        return PostVoteResponse(
            post_id=post_id,
            user_vote=current_choice(store, POST_VOTES, post_id),
            upvotes=post["upvotes"],
            downvotes=post["downvotes"],
        )


@router.post("/{post_id}/vote", response_model=PostVoteResponse)
def vote_post(post_id: str, vote: PostVoteRequest, current_user_id: str = Depends(get_current_user_id)):
    """Toggle the caller's vote: same vote again removes it, the other vote replaces it"""
    with get_db(immediate=True) as conn:
        result = toggle(Store(conn, current_user_id), POST_VOTES, post_id, vote.vote_type)
        conn.commit()
    return PostVoteResponse(post_id=post_id, user_vote=result.state, **result.counts)
