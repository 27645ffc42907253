from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime
from schemas.shared import Flair, VoteType, CommentResponse, clean_text


class PostCreate(BaseModel):
    city_id: str
    title: str
    content: str
    flair: Flair
    image_url: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        v = clean_text(v, 'Title', 200)
        if len(v) < 3:
            raise ValueError('Title must be at least 3 characters long')
        return v

    @validator('content')
    def validate_content(cls, v):
        return clean_text(v, 'Content', 10000)


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    flair: Optional[Flair] = None
    image_url: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        v = clean_text(v, 'Title', 200)
        if v is not None and len(v) < 3:
            raise ValueError('Title must be at least 3 characters long')
        return v

    @validator('content')
    def validate_content(cls, v):
        return clean_text(v, 'Content', 10000)


class PostResponse(BaseModel):
    id: str
    city_id: str
    author_id: str
    author_username: Optional[str] = None
    author_role: Optional[str] = None
    title: str
    content: str
    flair: Flair
    image_url: Optional[str] = None
    upvotes: int
    downvotes: int
    user_vote: Optional[VoteType] = None
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime


class PostResponseWithComments(PostResponse):
    comments: List[CommentResponse] = []


class PostVoteRequest(BaseModel):
    vote_type: VoteType


class PostVoteResponse(BaseModel):
    post_id: str
    user_vote: Optional[VoteType] = None
    upvotes: int
    downvotes: int
