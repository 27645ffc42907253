import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from database import get_db
from errors import UploadError
from file_utils import IMAGES, VIDEOS, delete_object_by_url, ensure_owned_object, save_upload
from routes.comments import VLOG_COMMENTS, add_comment, edit_comment, list_comments, remove_comment
from schemas import VlogUpdate, VlogResponse, VlogDetailResponse, ReactionRequest, ReactionResponse
from schemas.shared import CommentCreate, CommentUpdate, CommentResponse, clean_text
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id, usernames
from voting import VLOG_REACTIONS, toggle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vlogs", tags=["vlogs"])


def vlog_responses(store: Store, vlogs: List[dict]) -> List[VlogResponse]:
    vlog_ids = [v["id"] for v in vlogs]
    names = usernames(store, [v["user_id"] for v in vlogs])
    counts = {}
    for c in store.select("vlog_comments", where={"vlog_id": vlog_ids}):
        counts[c["vlog_id"]] = counts.get(c["vlog_id"], 0) + 1
    reactions = {}
    if store.actor_id:
        reactions = {
            r["vlog_id"]: r["reaction_type"]
            for r in store.select("vlog_reactions", where={"user_id": store.actor_id, "vlog_id": vlog_ids})
        }
    return [
        VlogResponse(
            **v,
            author_username=names.get(v["user_id"]),
            user_reaction=reactions.get(v["id"]),
            comment_count=counts.get(v["id"], 0),
        )
        for v in vlogs
    ]


@router.get("/", response_model=List[VlogResponse])
def list_vlogs(city_id: Optional[str] = None, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    """Vlogs, newest first, optionally for one city"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        where = {"city_id": city_id} if city_id else None
        return vlog_responses(store, store.select("travel_vlogs", where=where, order_by="created_at DESC"))


@router.post("/", status_code=201, response_model=VlogResponse)
def create_vlog(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    city_id: Optional[str] = Form(None),
    video_url: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """Publish a vlog from an uploaded video or an external ``video_url``"""
    try:
        title = clean_text(title, 'Title', 200)
    except ValueError as e:
        raise UploadError(str(e))
    if (video is None) == (not video_url):
        raise UploadError("Provide either a video file or a video_url")
    if video_url:
        ensure_owned_object(current_user_id, video_url)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        if city_id:
            store.get_or_404("cities", label="City", id=city_id)

    # Objects first; the row only ever references stored objects
    uploaded = []
    try:
        if video is not None:
            video_url = save_upload(VIDEOS, current_user_id, video)
            uploaded.append(video_url)
        thumbnail_url = None
        if thumbnail is not None:
            thumbnail_url = save_upload(IMAGES, current_user_id, thumbnail)
            uploaded.append(thumbnail_url)
        with get_db() as conn:
            store = Store(conn, current_user_id)
            row = store.insert("travel_vlogs", {
                "title": title,
                "description": description,
                "city_id": city_id or None,
                "video_url": video_url,
                "thumbnail_url": thumbnail_url,
                "user_id": current_user_id,
            })
            conn.commit()
            return vlog_responses(store, [row])[0]
    except Exception:
        for url in uploaded:
            delete_object_by_url(current_user_id, url)
        raise


@router.get("/{vlog_id}", response_model=VlogDetailResponse)
def get_vlog(vlog_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        vlog = store.get_or_404("travel_vlogs", label="Vlog", id=vlog_id)
        return VlogDetailResponse(
            **vlog_responses(store, [vlog])[0].model_dump(),
            comments=list_comments(store, VLOG_COMMENTS, vlog_id),
        )


@router.put("/{vlog_id}", response_model=VlogResponse)
def update_vlog(vlog_id: str, vlog: VlogUpdate, current_user_id: str = Depends(get_current_user_id)):
    changes = vlog.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is None:
        del changes["title"]
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("travel_vlogs", label="Vlog", id=vlog_id)
        if changes.get("city_id"):
            store.get_or_404("cities", label="City", id=changes["city_id"])
        row = store.update("travel_vlogs", {"id": vlog_id}, changes)
        conn.commit()
        return vlog_responses(store, [row])[0]


@router.delete("/{vlog_id}", status_code=204)
def delete_vlog(vlog_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        vlog = store.get_or_404("travel_vlogs", label="Vlog", id=vlog_id)
        store.delete("travel_vlogs", id=vlog_id)
        conn.commit()
    delete_object_by_url(current_user_id, vlog["video_url"])
    delete_object_by_url(current_user_id, vlog["thumbnail_url"])


@router.post("/{vlog_id}/react", response_model=ReactionResponse)
def react(vlog_id: str, reaction: ReactionRequest, current_user_id: str = Depends(get_current_user_id)):
    """Toggle the caller's like/dislike"""
    with get_db(immediate=True) as conn:
        result = toggle(Store(conn, current_user_id), VLOG_REACTIONS, vlog_id, reaction.reaction_type)
        conn.commit()
    return ReactionResponse(vlog_id=vlog_id, user_reaction=result.state, **result.counts)


@router.get("/{vlog_id}/comments", response_model=List[CommentResponse])
def get_vlog_comments(vlog_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("travel_vlogs", label="Vlog", id=vlog_id)
        return list_comments(store, VLOG_COMMENTS, vlog_id)


@router.post("/{vlog_id}/comments", status_code=201, response_model=CommentResponse)
def create_vlog_comment(vlog_id: str, comment: CommentCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = add_comment(Store(conn, current_user_id), VLOG_COMMENTS, vlog_id, comment)
        conn.commit()
        return response


@router.put("/comments/{comment_id}", response_model=CommentResponse)
def update_vlog_comment(comment_id: str, comment: CommentUpdate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = edit_comment(Store(conn, current_user_id), VLOG_COMMENTS, comment_id, comment)
        conn.commit()
        return response


@router.delete("/comments/{comment_id}", status_code=204)
def delete_vlog_comment(comment_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        remove_comment(Store(conn, current_user_id), VLOG_COMMENTS, comment_id)
        conn.commit()
