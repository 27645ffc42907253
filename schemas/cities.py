from pydantic import BaseModel, validator
from typing import Optional, List
from datetime import datetime
from schemas.shared import clean_text


class CityCreate(BaseModel):
    name: str
    country: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    @validator('name', 'country')
    def validate_name(cls, v):
        return clean_text(v, 'Name', 100)


class CityResponse(BaseModel):
    id: str
    name: str
    country: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    member_count: int = 0
    is_member: bool = False
    created_at: datetime


class CityMemberResponse(BaseModel):
    profile_id: str
    username: str
    role: str
    joined_at: datetime


class Place(BaseModel):
    xid: Optional[str] = None
    name: str
    kinds: str
    lat: Optional[float] = None
    lon: Optional[float] = None


class PlacesResponse(BaseModel):
    city_id: str
    kind: str
    places: List[Place] = []
    error: Optional[str] = None
