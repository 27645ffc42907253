from pydantic import BaseModel, validator
from typing import List, Literal, Optional
from datetime import datetime

Role = Literal['resident', 'traveler']
Flair = Literal['food_spot', 'hidden_gem', 'travel_plan', 'question', 'review', 'tip']
EventTag = Literal['festival', 'meetup', 'local_experience', 'food', 'culture', 'outdoor']
WikiSection = Literal['best_time_to_visit', 'safety', 'most_efficient_local_transport', 'question_of_the_week']
VoteType = Literal['up', 'down']
ReactionType = Literal['like', 'dislike']
RsvpStatus = Literal['going', 'interested', 'none']


def clean_text(v: Optional[str], name: str, max_length: int) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError(f'{name} cannot be empty')
    if len(v) > max_length:
        raise ValueError(f'{name} must be at most {max_length} characters long')
    return v


class CommentCreate(BaseModel):
    content: str
    parent_id: Optional[str] = None  # event discussions only

    @validator('content')
    def validate_content(cls, v):
        return clean_text(v, 'Content', 2000)


class CommentUpdate(BaseModel):
    content: str

    @validator('content')
    def validate_content(cls, v):
        return clean_text(v, 'Content', 2000)


class CommentResponse(BaseModel):
    id: str
    content: str
    author_id: str
    author_username: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    children: Optional[List['CommentResponse']] = None


CommentResponse.model_rebuild()
