from pydantic import BaseModel, validator
from schemas.shared import Role
import re

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{3,30}$')


class UserCreate(BaseModel):
    email: str
    password: str
    username: str
    role: Role = 'traveler'

    @validator('email')
    def validate_email(cls, v):
        v = v.strip().lower()
        if '@' not in v or v.startswith('@') or v.endswith('@'):
            raise ValueError('Invalid email address')
        return v

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters long')
        if len(v.encode()) > 72:
            raise ValueError('Password must be at most 72 bytes long')
        return v

    @validator('username')
    def validate_username(cls, v):
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError('Username must be 3-30 letters, digits, dots, dashes or underscores')
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user_id: str
