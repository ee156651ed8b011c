from datetime import datetime
from pydantic import BaseModel


class ReviewSummary(BaseModel):
    id: str
    content: str
    created_at: datetime


class MyReviewAssignmentOut(BaseModel):
    """A reviewer's queue entry, with the text to review inlined"""
    id: str
    text_id: str
    text_content: str
    text_created_at: datetime
    completed: bool
    review: ReviewSummary | None = None
