from pydantic import BaseModel, validator
from typing import Optional, List
from datetime import datetime
from schemas.shared import Role
from schemas.auth import USERNAME_PATTERN


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    bio: Optional[str] = None
    role: Optional[Role] = None
    city_id: Optional[str] = None
    interests: Optional[List[str]] = None

    @validator('username')
    def validate_username(cls, v):
        if v is not None:
            v = v.strip()
            if not USERNAME_PATTERN.match(v):
                raise ValueError('Username must be 3-30 letters, digits, dots, dashes or underscores')
        return v

    @validator('bio')
    def validate_bio(cls, v):
        if v is not None and len(v) > 500:
            raise ValueError('Bio must be at most 500 characters long')
        return v

    @validator('interests')
    def validate_interests(cls, v):
        if v is None:
            return v
        cleaned = []
        for interest in v:
            interest = interest.strip()
            if interest and interest not in cleaned:
                cleaned.append(interest)
        if len(cleaned) > 20:
            raise ValueError('Maximum 20 interests allowed')
        return cleaned


class ProfileResponse(BaseModel):
    id: str
    username: str
    bio: Optional[str] = None
    role: Role
    city_id: Optional[str] = None
    interests: List[str] = []
    score: int
    created_at: datetime


class MatchResponse(ProfileResponse):
    shared_city_ids: List[str]
