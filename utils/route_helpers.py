from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from auth import verify_token
from database import get_db
from schemas.shared import CommentResponse

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _user_id_from_token(token: str) -> str:
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id FROM users WHERE id = ?", (payload["sub"],))
        row = cursor.fetchone()
        if not row:
            raise HTTPException(status_code=401, detail="User not found")
        return row[0]


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Acting identity for endpoints that require sign-in"""
    return _user_id_from_token(token)


def get_optional_user_id(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[str]:
    """Acting identity when present; anonymous callers get ``None``"""
    if not token:
        return None
    return _user_id_from_token(token)


def usernames(store, profile_ids) -> dict:
    """Map profile id -> username for the given ids"""
    ids = {pid for pid in profile_ids if pid}
    if not ids:
        return {}
    return {p["id"]: p["username"] for p in store.select("profiles", where={"id": list(ids)})}


def comment_response(row: dict, names: dict, owner_field: str = "author_id"):
    """Normalise a comment-like row (comments, discussions, plan/vlog comments)"""
    author_id = row[owner_field]
    return CommentResponse(
        id=row["id"],
        content=row["content"],
        author_id=author_id,
        author_username=names.get(author_id),
        parent_id=row.get("parent_id"),
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
    )
