import logging

from fastapi import APIRouter, HTTPException, Depends

from auth import hash_password, verify_password, create_access_token
from config import settings
from database import get_db
from errors import ConstraintViolation
from schemas.auth import UserCreate, LoginRequest, Token
from store import Store, new_id
from utils.route_helpers import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def get_user_by_email(email: str, include_password=False):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id, email, password_hash, is_admin FROM users WHERE email = ?", (email,))
        row = cursor.fetchone()
        if not row:
            return None
        user = {"id": row[0], "email": row[1], "is_admin": bool(row[3])}
        if include_password:
            user["password_hash"] = row[2]
        return user


@router.post("/register", status_code=201, response_model=Token)
def register(user: UserCreate):
    """Create an account and its profile in one transaction"""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT 1 FROM users WHERE email = ?", (user.email,))
        if cursor.fetchone():
            raise ConstraintViolation("Email already registered")
        cursor.execute("SELECT 1 FROM profiles WHERE username = ?", (user.username,))
        if cursor.fetchone():
            raise ConstraintViolation("Username is already taken")
        user_id = new_id()
        cursor.execute(
            "INSERT INTO users (id, email, password_hash, is_admin) VALUES (?, ?, ?, ?)",
            (user_id, user.email, hash_password(user.password), user.email in settings.admin_emails)
        )
        Store(conn, actor_id=user_id).insert("profiles", {
            "id": user_id,
            "username": user.username,
            "role": user.role,
        })
        conn.commit()
    logger.info("Registered user %s (%s)", user_id, user.username)
    return Token(access_token=create_access_token({"sub": user_id}), token_type="bearer", user_id=user_id)


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest):
    user = get_user_by_email(login_data.email.strip().lower(), include_password=True)
    if not user or not verify_password(login_data.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    return Token(access_token=create_access_token({"sub": user["id"]}), token_type="bearer", user_id=user["id"])


@router.get("/me")
def me(current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT email, is_admin FROM users WHERE id = ?", (current_user_id,))
        row = cursor.fetchone()
        profile = Store(conn, current_user_id).get("profiles", id=current_user_id)
    return {
        "user_id": current_user_id,
        "email": row[0],
        "is_admin": bool(row[1]),
        "profile": profile,
    }
