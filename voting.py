"""
Toggle semantics for post votes and vlog reactions.

Only the vote/reaction row is written here. The counters on the target row
(and the author's score, for posts) are kept in step by the triggers in
``database_schemas.py`` within the same transaction.
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Optional, Tuple

from errors import ConstraintViolation
from store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleSpec:
    table: str            # vote/reaction rows
    target_table: str     # row carrying the counters
    target_field: str     # foreign key column in ``table``
    choice_field: str
    choices: Tuple[str, str]
    counters: Tuple[str, str]  # counter column per choice, same order
    label: str


POST_VOTES = ToggleSpec(
    table="post_votes",
    target_table="posts",
    target_field="post_id",
    choice_field="vote_type",
    choices=("up", "down"),
    counters=("upvotes", "downvotes"),
    label="Post",
)

VLOG_REACTIONS = ToggleSpec(
    table="vlog_reactions",
    target_table="travel_vlogs",
    target_field="vlog_id",
    choice_field="reaction_type",
    choices=("like", "dislike"),
    counters=("like_count", "dislike_count"),
    label="Vlog",
)


@dataclass
class ToggleResult:
    state: Optional[str]
    counts: dict


def current_choice(store: Store, spec: ToggleSpec, target_id: str) -> Optional[str]:
    if store.actor_id is None:
        return None
    row = store.get(spec.table, user_id=store.actor_id, **{spec.target_field: target_id})
    return row[spec.choice_field] if row else None


def toggle(store: Store, spec: ToggleSpec, target_id: str, choice: str) -> ToggleResult:
    """Apply ``choice`` for the actor: none -> choice, same choice -> none, other -> choice.

    Run inside ``get_db(immediate=True)`` so two toggles on the same target
    cannot interleave between the read of the current state and the write.
    """
    if choice not in spec.choices:
        raise ConstraintViolation(f"{spec.choice_field} must be one of {list(spec.choices)}")
    store.get_or_404(spec.target_table, label=spec.label, id=target_id)
    keys = {"user_id": store.actor_id, spec.target_field: target_id}
    previous = current_choice(store, spec, target_id)

    if previous is None:
        store.insert(spec.table, {**keys, spec.choice_field: choice})
        state = choice
    elif previous == choice:
        store.delete(spec.table, missing_ok=True, **keys)
        state = None
    else:
        store.update(spec.table, keys, {spec.choice_field: choice})
        state = choice

    target = store.get(spec.target_table, id=target_id)
    counts = {c: target[c] for c in spec.counters}
    logger.debug("%s %s on %s: %s -> %s", spec.table, store.actor_id, target_id, previous, state)
    return ToggleResult(state=state, counts=counts)


def reconcile_counters(conn: sqlite3.Connection) -> int:
    """Recompute every derived counter from the underlying rows.

    Returns the number of rows whose stored counters disagreed.
    """
    cursor = conn.cursor()
    corrected = 0
    for spec in (POST_VOTES, VLOG_REACTIONS):
        target = spec.target_table
        first_col, second_col = spec.counters
        expected = (
            f"(SELECT COUNT(*) FROM {spec.table} r "
            f"WHERE r.{spec.target_field} = {target}.id AND r.{spec.choice_field} = ?)"
        )
        cursor.execute(
            f"SELECT COUNT(*) FROM {target} WHERE {first_col} <> {expected} OR {second_col} <> {expected}",
            spec.choices
        )
        corrected += cursor.fetchone()[0]
        cursor.execute(f"UPDATE {target} SET {first_col} = {expected}, {second_col} = {expected}", spec.choices)
    score = "(SELECT COALESCE(SUM(points), 0) FROM score_events e WHERE e.profile_id = profiles.id)"
    cursor.execute(f"SELECT COUNT(*) FROM profiles WHERE score <> {score}")
    corrected += cursor.fetchone()[0]
    cursor.execute(f"UPDATE profiles SET score = {score}")
    if corrected:
        logger.warning("Reconciled %d counter row(s)", corrected)
    return corrected
