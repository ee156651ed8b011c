from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from peer_review.core.audit import log_event
from peer_review.core.errors import (
    AlreadyReviewed,
    FeedbackNotOpen,
    Forbidden,
    InactiveReviewAssignment,
    InsufficientReviewsCompleted,
    NotFound,
    PhaseViolation,
    ReviewAlreadyRejected,
)
from peer_review.core.logging import get_logger
from peer_review.core.phase import as_utc, can_review, phase_of, utcnow
from peer_review.core.texts import get_own_text
from peer_review.models.assignment import Assignment
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User

logger = get_logger(__name__)


@dataclass
class FeedbackView:
    text: Text | None
    reviews: list[Review] = field(default_factory=list)


def submit_review(
    db: Session,
    review_assignment_id: uuid.UUID,
    reviewer: User,
    content: str,
    *,
    now: datetime | None = None,
) -> Review:
    """Create the review and mark its assignment completed in the same transaction."""
    ra = db.get(ReviewAssignment, review_assignment_id)
    if ra is None:
        raise NotFound("Review assignment not found")

    if ra.reviewer_id != reviewer.id:
        raise Forbidden("Only the assigned reviewer can submit this review")

    if not ra.is_active:
        raise InactiveReviewAssignment()

    if ra.completed:
        raise AlreadyReviewed()

    assignment = db.get(Assignment, ra.assignment_id)
    if not can_review(phase_of(assignment, now)):
        raise PhaseViolation("Reviews can only be submitted during the review phase")

    review = Review(
        review_assignment_id=ra.id,
        text_id=ra.text_id,
        reviewer_id=reviewer.id,
        content=content,
    )
    db.add(review)
    ra.completed = True
    db.flush()

    log_event(
        db=db,
        actor=reviewer,
        action="REVIEW_SUBMITTED",
        entity_type="review",
        entity_id=review.id,
        metadata={"review_assignment_id": ra.id, "text_id": ra.text_id},
    )
    return review


def reject_review(
    db: Session,
    review_id: uuid.UUID,
    *,
    actor: User | None = None,
    now: datetime | None = None,
) -> Review:
    """
    Moderator rejection.

    Stamps rejected_at and reopens the owning review assignment
    (completed=False) so the same reviewer resubmits against the same text.
    The rejected row stays for audit and is_active is untouched. A second
    rejection raises instead of flipping state again.
    """
    review = db.get(Review, review_id)
    if review is None:
        raise NotFound("Review not found")

    if review.rejected_at is not None:
        raise ReviewAlreadyRejected()

    ra = db.get(ReviewAssignment, review.review_assignment_id)

    review.rejected_at = now or utcnow()
    ra.completed = False
    db.flush()

    log_event(
        db=db,
        actor=actor,
        action="REVIEW_REJECTED",
        entity_type="review",
        entity_id=review.id,
        metadata={"review_assignment_id": ra.id, "reviewer_id": review.reviewer_id},
    )
    logger.info("Review %s rejected; review assignment %s reopened", review.id, ra.id)
    return review


def mark_review_read(
    db: Session,
    review_id: uuid.UUID,
    user: User,
    *,
    now: datetime | None = None,
) -> Review:
    review = db.get(Review, review_id)
    if review is None:
        raise NotFound("Review not found")

    text = db.get(Text, review.text_id)
    # only the text author
    if text is None or text.author_id != user.id:
        raise Forbidden()

    review.read_at = now or utcnow()
    db.flush()

    log_event(
        db=db,
        actor=user,
        action="REVIEW_READ",
        entity_type="review",
        entity_id=review.id,
        metadata={"text_id": review.text_id},
    )
    return review


def count_completed_reviews(db: Session, assignment_id: uuid.UUID, reviewer_id: uuid.UUID) -> int:
    """Non-rejected reviews the user filed on active review assignments."""
    return (
        db.query(Review)
        .join(ReviewAssignment, ReviewAssignment.id == Review.review_assignment_id)
        .filter(
            ReviewAssignment.assignment_id == assignment_id,
            ReviewAssignment.reviewer_id == reviewer_id,
            ReviewAssignment.is_active.is_(True),
            Review.rejected_at.is_(None),
        )
        .count()
    )


def feedback_available(assignment: Assignment, now: datetime | None = None) -> bool:
    if assignment.feedback_open:
        return True
    if assignment.feedback_deadline is None:
        return False
    current = as_utc(now) if now is not None else utcnow()
    return as_utc(assignment.feedback_deadline) <= current


def feedback_for_author(
    db: Session,
    assignment: Assignment,
    user: User,
    *,
    now: datetime | None = None,
) -> FeedbackView:
    """
    Reviews on the user's own text, newest first.

    Gated twice: the teacher must have opened feedback (or its deadline
    passed), and the user must have completed min_reviews reviews themselves.
    Rejected reviews and reviews on retired assignments are left out.
    """
    if not feedback_available(assignment, now):
        raise FeedbackNotOpen()

    completed = count_completed_reviews(db, assignment.id, user.id)
    if completed < assignment.min_reviews:
        raise InsufficientReviewsCompleted(required=assignment.min_reviews, completed=completed)

    text = get_own_text(db, assignment.id, user.id)
    if text is None:
        return FeedbackView(text=None)

    reviews = (
        db.query(Review)
        .join(ReviewAssignment, ReviewAssignment.id == Review.review_assignment_id)
        .filter(
            Review.text_id == text.id,
            Review.rejected_at.is_(None),
            ReviewAssignment.is_active.is_(True),
        )
        .order_by(Review.created_at.desc())
        .all()
    )
    return FeedbackView(text=text, reviews=reviews)
