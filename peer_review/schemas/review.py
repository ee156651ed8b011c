import uuid
from datetime import datetime
from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    review_assignment_id: uuid.UUID
    content: str = Field(min_length=10)


class ReviewOut(BaseModel):
    id: str
    review_assignment_id: str
    text_id: str
    reviewer_id: str
    content: str
    created_at: datetime
    rejected_at: datetime | None
    read_at: datetime | None


class ReviewRejectOut(BaseModel):
    success: bool = True
    review_id: str
    rejected_at: datetime
    message: str


class ReviewReadOut(BaseModel):
    id: str
    read_at: datetime


class FeedbackItem(BaseModel):
    id: str
    content: str
    created_at: datetime
    read_at: datetime | None


class FeedbackOut(BaseModel):
    feedback: list[FeedbackItem]
    message: str | None = None
