from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime
from schemas.shared import EventTag, RsvpStatus, CommentResponse, clean_text


def _validate_tags(v):
    if v is None:
        return v
    deduped = []
    for tag in v:
        if tag not in deduped:
            deduped.append(tag)
    return deduped


class EventCreate(BaseModel):
    city_id: str
    title: str
    description: Optional[str] = None
    date: datetime
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    tags: List[EventTag] = []
    max_attendees: Optional[int] = None
    is_private: bool = False
    image_url: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        return clean_text(v, 'Title', 200)

    @validator('tags')
    def validate_tags(cls, v):
        return _validate_tags(v)

    @validator('max_attendees')
    def validate_max_attendees(cls, v):
        if v is not None and v < 1:
            raise ValueError('max_attendees must be positive')
        return v

    @validator('location_lat')
    def validate_lat(cls, v):
        if v is not None and not -90 <= v <= 90:
            raise ValueError('Latitude must be between -90 and 90')
        return v

    @validator('location_lng')
    def validate_lng(cls, v):
        if v is not None and not -180 <= v <= 180:
            raise ValueError('Longitude must be between -180 and 180')
        return v


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    tags: Optional[List[EventTag]] = None
    max_attendees: Optional[int] = None
    is_private: Optional[bool] = None
    image_url: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        return clean_text(v, 'Title', 200)

    @validator('tags')
    def validate_tags(cls, v):
        return _validate_tags(v)

    @validator('max_attendees')
    def validate_max_attendees(cls, v):
        if v is not None and v < 1:
            raise ValueError('max_attendees must be positive')
        return v

    @validator('location_lat')
    def validate_lat(cls, v):
        if v is not None and not -90 <= v <= 90:
            raise ValueError('Latitude must be between -90 and 90')
        return v

    @validator('location_lng')
    def validate_lng(cls, v):
        if v is not None and not -180 <= v <= 180:
            raise ValueError('Longitude must be between -180 and 180')
        return v


class EventResponse(BaseModel):
    id: str
    city_id: str
    added_by: str
    author_username: Optional[str] = None
    title: str
    description: Optional[str] = None
    date: datetime
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    tags: List[EventTag] = []
    max_attendees: Optional[int] = None
    is_private: bool
    image_url: Optional[str] = None
    going_count: int = 0
    interested_count: int = 0
    user_rsvp: RsvpStatus = 'none'
    created_at: datetime


class EventDetailResponse(EventResponse):
    discussions: List[CommentResponse] = []


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpResponse(BaseModel):
    event_id: str
    user_id: str
    status: RsvpStatus
    going_count: int
    interested_count: int


class RsvpEntry(BaseModel):
    user_id: str
    username: Optional[str] = None
    status: RsvpStatus
    created_at: datetime
