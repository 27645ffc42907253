from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime
from schemas.shared import clean_text


class ChatStart(BaseModel):
    profile_id: str


class ChatResponse(BaseModel):
    id: str
    user1_id: str
    user2_id: str
    partner_id: str
    partner_username: Optional[str] = None
    poll_interval_s: int
    last_message: Optional['MessageResponse'] = None
    created_at: datetime


class MessageCreate(BaseModel):
    content: str

    @validator('content')
    def validate_content(cls, v):
        return clean_text(v, 'Message', 4000)


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    sender_id: str
    sender_username: Optional[str] = None
    content: str
    created_at: datetime


ChatResponse.model_rebuild()
