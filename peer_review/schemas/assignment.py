from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from peer_review.core.phase import Phase, as_utc


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    write_deadline: datetime
    review_deadline: datetime
    feedback_deadline: datetime | None = None
    min_reviews: int = Field(default=1, ge=1, le=10)

    @model_validator(mode="after")
    def check_deadline_order(self):
        if as_utc(self.review_deadline) <= as_utc(self.write_deadline):
            raise ValueError("review_deadline must be after write_deadline")
        return self


class AssignmentOut(BaseModel):
    id: str
    title: str
    description: str | None
    write_deadline: datetime
    review_deadline: datetime
    feedback_deadline: datetime | None
    min_reviews: int
    distribution_done: bool
    feedback_open: bool
    phase: Phase
    can_submit_text: bool
    can_edit_text: bool
    can_review: bool
    created_at: datetime


class PhaseOverride(BaseModel):
    phase: Phase


class FeedbackToggleOut(BaseModel):
    feedback_open: bool
    message: str


class DistributionOut(BaseModel):
    success: bool = True
    assignments_created: int
    unassigned_reviewer_ids: list[str] = []
    fully_covered: bool
    message: str


class AssignmentStats(BaseModel):
    """Progress counters for one assignment"""
    assignment_id: str
    phase: Phase
    distribution_done: bool
    total_texts: int = 0
    active_review_assignments: int = 0
    inactive_review_assignments: int = 0
    completed_review_assignments: int = 0
    total_reviews: int = 0
    rejected_reviews: int = 0
    completion_rate: float = 0.0  # Percentage of active review assignments completed
