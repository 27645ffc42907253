from pydantic import BaseModel, validator
from typing import Dict, List, Optional
from datetime import datetime
from schemas.shared import WikiSection


class WikiEntryUpsert(BaseModel):
    content: str = ''
    poll_question: Optional[str] = None
    poll_answers: Optional[List[str]] = None

    @validator('content')
    def validate_content(cls, v):
        if len(v) > 20000:
            raise ValueError('Content must be at most 20000 characters long')
        return v

    @validator('poll_answers')
    def validate_poll_answers(cls, v, values):
        if v is None:
            return v
        answers = []
        for answer in v:
            answer = answer.strip()
            if not answer:
                raise ValueError('Poll answers cannot be empty')
            if answer in answers:
                raise ValueError('Poll answers must be unique')
            answers.append(answer)
        if not 2 <= len(answers) <= 10:
            raise ValueError('A poll needs between 2 and 10 answers')
        if not values.get('poll_question'):
            raise ValueError('Poll answers need a poll question')
        return answers


class WikiEntryResponse(BaseModel):
    id: Optional[str] = None
    city_id: str
    section: WikiSection
    content: str = ''
    poll_question: Optional[str] = None
    poll_answers: Optional[List[str]] = None
    poll_votes: Optional[Dict[str, int]] = None
    profile_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class PollVoteRequest(BaseModel):
    choice: str
