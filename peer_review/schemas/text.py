from datetime import datetime
from pydantic import BaseModel, Field


class TextSubmit(BaseModel):
    content: str = Field(min_length=50)


class TextOut(BaseModel):
    id: str
    assignment_id: str
    author_id: str
    content: str
    created_at: datetime
    updated_at: datetime


class MyTextOut(BaseModel):
    text: TextOut | None
    can_edit: bool
    can_submit: bool
