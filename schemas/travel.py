from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import date, datetime
from schemas.shared import ReactionType, CommentResponse, clean_text


class TravelPlanCreate(BaseModel):
    city_id: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    images: List[str] = []

    @validator('title')
    def validate_title(cls, v):
        return clean_text(v, 'Title', 200)

    @validator('end_date')
    def validate_date_range(cls, v, values):
        start = values.get('start_date')
        if start is not None and v < start:
            raise ValueError('end_date must be on or after start_date')
        return v

    @validator('images')
    def validate_images(cls, v):
        if len(v) > 10:
            raise ValueError('Maximum 10 images allowed')
        return v


class TravelPlanUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    images: Optional[List[str]] = None

    @validator('title')
    def validate_title(cls, v):
        return clean_text(v, 'Title', 200)

    @validator('images')
    def validate_images(cls, v):
        if v is not None and len(v) > 10:
            raise ValueError('Maximum 10 images allowed')
        return v


class TravelPlanResponse(BaseModel):
    id: str
    city_id: str
    user_id: str
    author_username: Optional[str] = None
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    images: List[str] = []
    comment_count: int = 0
    created_at: datetime


class TravelPlanDetailResponse(TravelPlanResponse):
    comments: List[CommentResponse] = []


class VlogUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    city_id: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        return clean_text(v, 'Title', 200)


class VlogResponse(BaseModel):
    id: str
    user_id: str
    author_username: Optional[str] = None
    city_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    like_count: int
    dislike_count: int
    user_reaction: Optional[ReactionType] = None
    comment_count: int = 0
    created_at: datetime


class VlogDetailResponse(VlogResponse):
    comments: List[CommentResponse] = []


class ReactionRequest(BaseModel):
    reaction_type: ReactionType


class ReactionResponse(BaseModel):
    vlog_id: str
    user_reaction: Optional[ReactionType] = None
    like_count: int
    dislike_count: int
