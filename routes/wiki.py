import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from database import get_db
from database_schemas import WIKI_SECTIONS
from errors import ConstraintViolation, NotFound
from schemas.shared import WikiSection
from schemas.wiki import WikiEntryUpsert, WikiEntryResponse, PollVoteRequest
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cities/{city_id}/wiki", tags=["wiki"])


@router.get("/", response_model=List[WikiEntryResponse])
def list_sections(city_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    """Every section of a city's wiki; sections nobody wrote yet come back empty"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=city_id)
        entries = {e["section"]: e for e in store.select("community_wiki", where={"city_id": city_id})}
        return [
            WikiEntryResponse(**entries[section]) if section in entries
            else WikiEntryResponse(city_id=city_id, section=section)
            for section in WIKI_SECTIONS
        ]


@router.put("/{section}", response_model=WikiEntryResponse)
def upsert_section(
    city_id: str,
    section: WikiSection,
    entry: WikiEntryUpsert,
    current_user_id: str = Depends(get_current_user_id)
):
    """Write a section. The first author owns it; later edits are theirs only."""
    values = {"content": entry.content, "poll_question": entry.poll_question}
    if entry.poll_answers is not None:
        values["poll_answers"] = entry.poll_answers
    elif entry.poll_question is None:
        values["poll_answers"] = None
        values["poll_votes"] = None
    with get_db(immediate=True) as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=city_id)
        existing = store.get("community_wiki", city_id=city_id, section=section)
        if existing is None:
            if entry.poll_question and entry.poll_answers is None:
                raise ConstraintViolation("A poll needs answers")
            if entry.poll_answers is not None:
                values["poll_votes"] = {answer: 0 for answer in entry.poll_answers}
            row = store.insert("community_wiki", {
                **values,
                "city_id": city_id,
                "section": section,
                "profile_id": current_user_id,
            })
        else:
            if entry.poll_question and entry.poll_answers is None and not existing["poll_answers"]:
                raise ConstraintViolation("A poll needs answers")
            if entry.poll_answers is not None:
                tally = existing["poll_votes"] or {}
                values["poll_votes"] = {answer: tally.get(answer, 0) for answer in entry.poll_answers}
            row = store.update("community_wiki", {"id": existing["id"]}, values)
        conn.commit()
        return WikiEntryResponse(**row)


@router.post("/{section}/poll", response_model=WikiEntryResponse)
def vote_poll(
    city_id: str,
    section: WikiSection,
    vote: PollVoteRequest,
    current_user_id: str = Depends(get_current_user_id)
):
    """Add one vote to a poll answer"""
    with get_db(immediate=True) as conn:
        store = Store(conn, current_user_id)
        entry = store.get("community_wiki", city_id=city_id, section=section)
        if entry is None or not entry["poll_answers"]:
            raise NotFound("Poll not found")
        if vote.choice not in entry["poll_answers"]:
            raise ConstraintViolation("Choice is not one of the poll answers")
        tally = dict(entry["poll_votes"] or {})
        tally[vote.choice] = tally.get(vote.choice, 0) + 1
        row = store.update("community_wiki", {"id": entry["id"]}, {"poll_votes": tally}, action="poll_vote")
        conn.commit()
    logger.debug("Poll vote on %s/%s by %s", city_id, section, current_user_id)
    return WikiEntryResponse(**row)
