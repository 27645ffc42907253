from dataclasses import dataclass
from typing import List, Optional

from fastapi import APIRouter, Depends

from database import get_db
from errors import ConstraintViolation
from schemas.shared import CommentCreate, CommentUpdate, CommentResponse
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id, usernames, comment_response


@dataclass(frozen=True)
class CommentThread:
    """A comment-like table hanging off a parent entity"""
    table: str
    target_table: str
    target_field: str
    owner_field: str
    label: str
    threaded: bool = False  # rows carry parent_id replies


POST_COMMENTS = CommentThread("comments", "posts", "post_id", "author_id", "Post")
EVENT_DISCUSSIONS = CommentThread("event_discussions", "events", "event_id", "author_id", "Event", threaded=True)
PLAN_COMMENTS = CommentThread("travel_plan_comments", "travel_plans", "plan_id", "user_id", "Travel plan")
VLOG_COMMENTS = CommentThread("vlog_comments", "travel_vlogs", "vlog_id", "user_id", "Vlog")


def get_comment_tree(comments: List[CommentResponse]) -> List[CommentResponse]:
    """Nest replies under their parents; orphans stay at the top level"""
    by_id = {c.id: c for c in comments}
    tree = []
    for comment in comments:
        if comment.parent_id and comment.parent_id in by_id:
            parent = by_id[comment.parent_id]
            if parent.children is None:
                parent.children = []
            parent.children.append(comment)
        else:
            tree.append(comment)
    return tree


def list_comments(store: Store, thread: CommentThread, target_id: str) -> List[CommentResponse]:
    rows = store.select(thread.table, where={thread.target_field: target_id}, order_by="created_at")
    names = usernames(store, [r[thread.owner_field] for r in rows])
    comments = [comment_response(r, names, thread.owner_field) for r in rows]
    return get_comment_tree(comments) if thread.threaded else comments


def add_comment(store: Store, thread: CommentThread, target_id: str, comment: CommentCreate) -> CommentResponse:
    store.get_or_404(thread.target_table, label=thread.label, id=target_id)
    values = {
        thread.target_field: target_id,
        thread.owner_field: store.actor_id,
        "content": comment.content,
    }
    if thread.threaded and comment.parent_id:
        parent = store.get_or_404(thread.table, label="Parent comment", id=comment.parent_id)
        if parent[thread.target_field] != target_id:
            raise ConstraintViolation("Replies must belong to the same thread")
        values["parent_id"] = comment.parent_id
    elif comment.parent_id:
        raise ConstraintViolation("Replies are not supported here")
    row = store.insert(thread.table, values)
    return comment_response(row, usernames(store, [store.actor_id]), thread.owner_field)


def edit_comment(store: Store, thread: CommentThread, comment_id: str, comment: CommentUpdate) -> CommentResponse:
    store.get_or_404(thread.table, label="Comment", id=comment_id)
    row = store.update(thread.table, {"id": comment_id}, {"content": comment.content})
    return comment_response(row, usernames(store, [row[thread.owner_field]]), thread.owner_field)


def remove_comment(store: Store, thread: CommentThread, comment_id: str):
    store.get_or_404(thread.table, label="Comment", id=comment_id)
    store.delete(thread.table, id=comment_id)


def list_post_comments(store: Store, post_id: str) -> List[CommentResponse]:
    return list_comments(store, POST_COMMENTS, post_id)


router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/post/{post_id}", response_model=List[CommentResponse])
def get_post_comments(post_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("posts", label="Post", id=post_id)
        return list_post_comments(store, post_id)


@router.post("/post/{post_id}", status_code=201, response_model=CommentResponse)
def create_comment(post_id: str, comment: CommentCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = add_comment(Store(conn, current_user_id), POST_COMMENTS, post_id, comment)
        conn.commit()
        return response


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(comment_id: str, comment: CommentUpdate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = edit_comment(Store(conn, current_user_id), POST_COMMENTS, comment_id, comment)
        conn.commit()
        return response


@router.delete("/{comment_id}", status_code=204)
def delete_comment(comment_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        remove_comment(Store(conn, current_user_id), POST_COMMENTS, comment_id)
        conn.commit()
