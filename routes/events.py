import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from database import get_db
from errors import ConstraintViolation
from file_utils import delete_object_by_url, ensure_owned_object
from routes.comments import EVENT_DISCUSSIONS, add_comment, list_comments, remove_comment
from schemas import EventCreate, EventUpdate, EventResponse, EventDetailResponse, RsvpRequest, RsvpResponse, RsvpEntry
from schemas.shared import CommentCreate, CommentResponse
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id, usernames

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def stored_date(value: datetime) -> str:
    """Naive UTC ISO text, so dates sort and compare as strings"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat()


def rsvp_counts(store: Store, event_id: str) -> dict:
    counts = {"going": 0, "interested": 0}
    for rsvp in store.select("event_rsvps", where={"event_id": event_id}):
        counts[rsvp["status"]] += 1
    return counts


def event_response(store: Store, event: dict) -> EventResponse:
    counts = rsvp_counts(store, event["id"])
    own = store.get("event_rsvps", event_id=event["id"], user_id=store.actor_id) if store.actor_id else None
    return EventResponse(
        **event,
        author_username=usernames(store, [event["added_by"]]).get(event["added_by"]),
        going_count=counts["going"],
        interested_count=counts["interested"],
        user_rsvp=own["status"] if own else "none",
    )


@router.get("/", response_model=List[EventResponse])
def list_events(
    city_id: str,
    upcoming: bool = Query(False, description="Only events that have not started yet"),
    current_user_id: Optional[str] = Depends(get_optional_user_id)
):
    """Events of a city ordered by date"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=city_id)
        events = store.select("events", where={"city_id": city_id}, order_by="date")
        if upcoming:
            now = conn.execute("SELECT strftime('%Y-%m-%dT%H:%M:%f', 'now')").fetchone()[0]
            events = [e for e in events if str(e["date"]).replace(" ", "T") >= now]
        return [event_response(store, e) for e in events]


@router.post("/", status_code=201, response_model=EventResponse)
def create_event(event: EventCreate, current_user_id: str = Depends(get_current_user_id)):
    """Residents publish events for a city"""
    ensure_owned_object(current_user_id, event.image_url)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=event.city_id)
        values = event.model_dump()
        values["date"] = stored_date(event.date)
        row = store.insert("events", {**values, "added_by": current_user_id})
        conn.commit()
        logger.info("Event %s created in city %s", row["id"], event.city_id)
        return event_response(store, row)


@router.get("/{event_id}", response_model=EventDetailResponse)
def get_event(event_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        event = store.get_or_404("events", label="Event", id=event_id)
        return EventDetailResponse(
            **event_response(store, event).model_dump(),
            discussions=list_comments(store, EVENT_DISCUSSIONS, event_id),
        )


@router.put("/{event_id}", response_model=EventResponse)
def update_event(event_id: str, event: EventUpdate, current_user_id: str = Depends(get_current_user_id)):
    changes = event.model_dump(exclude_unset=True)
    for field in ("title", "date", "tags", "is_private"):
        if field in changes and changes[field] is None:
            del changes[field]
    if "date" in changes:
        changes["date"] = stored_date(changes["date"])
    if "image_url" in changes:
        ensure_owned_object(current_user_id, changes["image_url"])
    with get_db() as conn:
        store = Store(conn, current_user_id)
        existing = store.get_or_404("events", label="Event", id=event_id)
        if changes.get("max_attendees") is not None:
            if rsvp_counts(store, event_id)["going"] > changes["max_attendees"]:
                raise ConstraintViolation("More attendees are already going than the new limit")
        row = store.update("events", {"id": event_id}, changes)
        conn.commit()
        response = event_response(store, row)
    if "image_url" in changes and existing["image_url"] != row["image_url"]:
        delete_object_by_url(current_user_id, existing["image_url"])
    return response


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        event = store.get_or_404("events", label="Event", id=event_id)
        store.delete("events", id=event_id)
        conn.commit()
    delete_object_by_url(current_user_id, event["image_url"])


@router.post("/{event_id}/rsvp", response_model=RsvpResponse)
def rsvp(event_id: str, request: RsvpRequest, current_user_id: str = Depends(get_current_user_id)):
    """Set the caller's attendance. ``none`` clears it; one row per user and event."""
    with get_db(immediate=True) as conn:
        store = Store(conn, current_user_id)
        event = store.get_or_404("events", label="Event", id=event_id)
        keys = {"event_id": event_id, "user_id": current_user_id}
        existing = store.get("event_rsvps", **keys)
        if request.status == "none":
            store.delete("event_rsvps", missing_ok=True, **keys)
        else:
            if request.status == "going" and (not existing or existing["status"] != "going"):
                cap = event["max_attendees"]
                if cap is not None and rsvp_counts(store, event_id)["going"] >= cap:
                    raise ConstraintViolation("Event is full")
            if existing:
                store.update("event_rsvps", keys, {"status": request.status})
            else:
                store.insert("event_rsvps", {**keys, "status": request.status})
        counts = rsvp_counts(store, event_id)
        conn.commit()
    return RsvpResponse(
        event_id=event_id,
        user_id=current_user_id,
        status=request.status,
        going_count=counts["going"],
        interested_count=counts["interested"],
    )


@router.get("/{event_id}/rsvps", response_model=List[RsvpEntry])
def list_rsvps(event_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("events", label="Event", id=event_id)
        rsvps = store.select("event_rsvps", where={"event_id": event_id}, order_by="created_at")
        names = usernames(store, [r["user_id"] for r in rsvps])
        return [
            RsvpEntry(user_id=r["user_id"], username=names.get(r["user_id"]), status=r["status"], created_at=r["created_at"])
            for r in rsvps
        ]


@router.get("/{event_id}/discussions", response_model=List[CommentResponse])
def list_discussions(event_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("events", label="Event", id=event_id)
        return list_comments(store, EVENT_DISCUSSIONS, event_id)


@router.post("/{event_id}/discussions", status_code=201, response_model=CommentResponse)
def create_discussion(event_id: str, comment: CommentCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        response = add_comment(Store(conn, current_user_id), EVENT_DISCUSSIONS, event_id, comment)
        conn.commit()
        return response


@router.delete("/discussions/{discussion_id}", status_code=204)
def delete_discussion(discussion_id: str, current_user_id: str = Depends(get_current_user_id)):
    """Delete a discussion entry and, through the foreign key, its replies"""
    with get_db() as conn:
        remove_comment(Store(conn, current_user_id), EVENT_DISCUSSIONS, discussion_id)
        conn.commit()
