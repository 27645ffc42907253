"""
Direct chats between two profiles.

A pair of profiles has at most one chat. The pair is always stored with the
smaller identifier first, so looking a chat up from either side finds the same
row. Clients without a push channel poll ``GET /chats/{id}/messages?after=...``.
"""

import logging
from typing import List, NamedTuple, Optional

from fastapi import APIRouter, Depends, Query

from config import settings
from database import get_db
from errors import ConstraintViolation
from schemas.chats import ChatStart, ChatResponse, MessageCreate, MessageResponse
from store import Store
from utils.route_helpers import get_current_user_id, usernames

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


class ChatPair(NamedTuple):
    user1_id: str
    user2_id: str

    @classmethod
    def of(cls, a: str, b: str) -> "ChatPair":
        if a == b:
            raise ConstraintViolation("Cannot start a chat with yourself")
        return cls(*sorted((a, b)))


def resolve_chat(store: Store, other_id: str) -> dict:
    """Existing chat between the actor and ``other_id``, created on first contact.

    Call inside ``get_db(immediate=True)`` so two first contacts cannot race.
    """
    pair = ChatPair.of(store.actor_id, other_id)
    store.get_or_404("profiles", label="Profile", id=other_id)
    chat = store.get("chats", user1_id=pair.user1_id, user2_id=pair.user2_id)
    if chat is None:
        chat = store.insert("chats", pair._asdict())
        logger.info("Chat %s opened between %s and %s", chat["id"], *pair)
    return chat


def message_responses(store: Store, messages: List[dict]) -> List[MessageResponse]:
    names = usernames(store, [m["sender_id"] for m in messages])
    return [MessageResponse(**m, sender_username=names.get(m["sender_id"])) for m in messages]


def chat_response(store: Store, chat: dict) -> ChatResponse:
    partner_id = chat["user2_id"] if chat["user1_id"] == store.actor_id else chat["user1_id"]
    last = store.select("messages", where={"chat_id": chat["id"]}, order_by="created_at DESC", limit=1)
    return ChatResponse(
        **chat,
        partner_id=partner_id,
        partner_username=usernames(store, [partner_id]).get(partner_id),
        poll_interval_s=settings.chat_poll_interval_s,
        last_message=message_responses(store, last)[0] if last else None,
    )


@router.post("/", response_model=ChatResponse)
def start_chat(request: ChatStart, current_user_id: str = Depends(get_current_user_id)):
    with get_db(immediate=True) as conn:
        store = Store(conn, current_user_id)
        chat = resolve_chat(store, request.profile_id)
        conn.commit()
        return chat_response(store, chat)


@router.get("/", response_model=List[ChatResponse])
def list_chats(current_user_id: str = Depends(get_current_user_id)):
    """The caller's chats, most recent activity first"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        chats = store.select("chats", where={"user1_id": current_user_id}) + \
            store.select("chats", where={"user2_id": current_user_id})
        responses = [chat_response(store, c) for c in chats]
        responses.sort(
            key=lambda c: c.last_message.created_at if c.last_message else c.created_at,
            reverse=True
        )
        return responses


@router.get("/{chat_id}", response_model=ChatResponse)
def get_chat(chat_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        return chat_response(store, store.get_or_404("chats", label="Chat", id=chat_id))


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
def list_messages(
    chat_id: str,
    after: Optional[str] = Query(None, description="Only messages created after this message id"),
    limit: int = Query(100, ge=1, le=500),
    current_user_id: str = Depends(get_current_user_id)
):
    """Messages in creation order"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("chats", label="Chat", id=chat_id)
        messages = store.select("messages", where={"chat_id": chat_id}, order_by="created_at")
        if after:
            ids = [m["id"] for m in messages]
            if after not in ids:
                raise ConstraintViolation("Unknown message cursor")
            messages = messages[ids.index(after) + 1:]
        return message_responses(store, messages[:limit])


@router.post("/{chat_id}/messages", status_code=201, response_model=MessageResponse)
def send_message(chat_id: str, message: MessageCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("chats", label="Chat", id=chat_id)
        row = store.insert("messages", {
            "chat_id": chat_id,
            "sender_id": current_user_id,
            "content": message.content,
        })
        conn.commit()
        return message_responses(store, [row])[0]
