"""
Row-level authorization.

Every table has a ``TablePolicy`` made of predicates over the acting identity
and the row being read or written. The store evaluates them before touching
any data. Anything not explicitly allowed is denied.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from errors import AuthorizationDenied

logger = logging.getLogger(__name__)

SELECT = "select"
INSERT = "insert"
UPDATE_USING = "update_using"
UPDATE_CHECK = "update_check"
DELETE = "delete"


@dataclass
class PolicyContext:
    actor_id: Optional[str]
    cursor: sqlite3.Cursor


Predicate = Callable[[PolicyContext, dict], bool]


def public(ctx: PolicyContext, row: dict) -> bool:
    return True


def deny(ctx: PolicyContext, row: dict) -> bool:
    return False


def authenticated(ctx: PolicyContext, row: dict) -> bool:
    return ctx.actor_id is not None


def owner(owner_field: str) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        return ctx.actor_id is not None and row.get(owner_field) == ctx.actor_id
    check.__name__ = f"owner({owner_field})"
    return check


def has_role(role: str) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        if ctx.actor_id is None:
            return False
        ctx.cursor.execute("SELECT 1 FROM profiles WHERE id = ? AND role = ?", (ctx.actor_id, role))
        return ctx.cursor.fetchone() is not None
    check.__name__ = f"has_role({role})"
    return check


def is_admin(ctx: PolicyContext, row: dict) -> bool:
    if ctx.actor_id is None:
        return False
    ctx.cursor.execute("SELECT is_admin FROM users WHERE id = ?", (ctx.actor_id,))
    found = ctx.cursor.fetchone()
    return bool(found and found[0])


def participant(*fields: str) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        return ctx.actor_id is not None and ctx.actor_id in (row.get(f) for f in fields)
    check.__name__ = f"participant({', '.join(fields)})"
    return check


def ordered_pair(low_field: str, high_field: str) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        low, high = row.get(low_field), row.get(high_field)
        return low is not None and high is not None and low < high
    check.__name__ = f"ordered_pair({low_field}, {high_field})"
    return check


def chat_member(chat_field: str) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        if ctx.actor_id is None:
            return False
        ctx.cursor.execute(
            "SELECT 1 FROM chats WHERE id = ? AND (user1_id = ? OR user2_id = ?)",
            (row.get(chat_field), ctx.actor_id, ctx.actor_id)
        )
        return ctx.cursor.fetchone() is not None
    check.__name__ = f"chat_member({chat_field})"
    return check


def all_of(*predicates: Predicate) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        return all(p(ctx, row) for p in predicates)
    return check


def any_of(*predicates: Predicate) -> Predicate:
    def check(ctx: PolicyContext, row: dict) -> bool:
        return any(p(ctx, row) for p in predicates)
    return check


@dataclass
class TablePolicy:
    select: Predicate = deny
    insert: Predicate = deny
    update_using: Predicate = deny
    update_check: Predicate = deny
    delete: Predicate = deny
    extra: Dict[str, Predicate] = field(default_factory=dict)

    def predicate_for(self, action: str) -> Predicate:
        if action in (SELECT, INSERT, UPDATE_USING, UPDATE_CHECK, DELETE):
            return getattr(self, action)
        return self.extra.get(action, deny)


def owned_content(owner_field: str, **overrides) -> TablePolicy:
    """Publicly readable rows that only their owner may write."""
    is_owner = owner(owner_field)
    policy = TablePolicy(
        select=public,
        insert=is_owner,
        update_using=is_owner,
        update_check=is_owner,
        delete=is_owner,
    )
    for name, predicate in overrides.items():
        setattr(policy, name, predicate)
    return policy


is_chat_participant = participant("user1_id", "user2_id")

POLICIES: Dict[str, TablePolicy] = {
    "cities": TablePolicy(select=public, insert=authenticated, delete=is_admin),
    "profiles": owned_content("id"),
    "city_members": owned_content("profile_id"),
    "posts": owned_content("author_id"),
    "comments": owned_content("author_id"),
    "post_votes": owned_content("user_id"),
    "events": owned_content("added_by", insert=all_of(owner("added_by"), has_role("resident"))),
    "event_rsvps": owned_content("user_id"),
    "event_discussions": owned_content("author_id"),
    "travel_plans": owned_content("user_id"),
    "travel_plan_comments": owned_content("user_id"),
    "travel_vlogs": owned_content("user_id"),
    "vlog_reactions": owned_content("user_id"),
    "vlog_comments": owned_content("user_id"),
    "chats": TablePolicy(
        select=is_chat_participant,
        insert=all_of(is_chat_participant, ordered_pair("user1_id", "user2_id")),
    ),
    "messages": TablePolicy(
        select=chat_member("chat_id"),
        insert=all_of(owner("sender_id"), chat_member("chat_id")),
    ),
    "community_wiki": owned_content("profile_id", extra={"poll_vote": authenticated}),
    "score_events": TablePolicy(select=public),
}


def _policy(table: str) -> TablePolicy:
    return POLICIES.get(table, TablePolicy())


def is_allowed(ctx: PolicyContext, table: str, action: str, row: dict) -> bool:
    return _policy(table).predicate_for(action)(ctx, row)


def visible(ctx: PolicyContext, table: str, row: dict) -> bool:
    return is_allowed(ctx, table, SELECT, row)


def authorize(ctx: PolicyContext, table: str, action: str, row: dict):
    if not is_allowed(ctx, table, action, row):
        logger.info("Denied %s on %s for actor %s", action, table, ctx.actor_id)
        raise AuthorizationDenied(f"Not permitted to {action.split('_')[0]} {table}")
