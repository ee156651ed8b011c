import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from peer_review.core.access import get_assignment_or_404
from peer_review.core.rbac import require_teacher
from peer_review.core.reviews import feedback_for_author, mark_review_read, reject_review, submit_review
from peer_review.core.security import get_current_user
from peer_review.db.session import get_db
from peer_review.models.review import Review
from peer_review.models.user import User
from peer_review.schemas.review import (
    FeedbackItem,
    FeedbackOut,
    ReviewCreate,
    ReviewOut,
    ReviewReadOut,
    ReviewRejectOut,
)

router = APIRouter(tags=["reviews"])


def to_out(r: Review) -> ReviewOut:
    return ReviewOut(
        id=str(r.id),
        review_assignment_id=str(r.review_assignment_id),
        text_id=str(r.text_id),
        reviewer_id=str(r.reviewer_id),
        content=r.content,
        created_at=r.created_at,
        rejected_at=r.rejected_at,
        read_at=r.read_at,
    )


@router.post("/reviews", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = submit_review(db, payload.review_assignment_id, current_user, payload.content)
    db.commit()
    db.refresh(review)
    return to_out(review)


@router.patch("/reviews/{review_id}/reject", response_model=ReviewRejectOut)
def reject(
    review_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    review = reject_review(db, review_id, actor=current_user)
    db.commit()
    db.refresh(review)
    return ReviewRejectOut(
        review_id=str(review.id),
        rejected_at=review.rejected_at,
        message="Review rejected; the reviewer must resubmit",
    )


@router.patch("/reviews/{review_id}/mark-read", response_model=ReviewReadOut)
def mark_read(
    review_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = mark_review_read(db, review_id, current_user)
    db.commit()
    db.refresh(review)
    return ReviewReadOut(id=str(review.id), read_at=review.read_at)


@router.get("/assignments/{assignment_id}/my-feedback", response_model=FeedbackOut)
def my_feedback(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = get_assignment_or_404(db, assignment_id)

    view = feedback_for_author(db, assignment, current_user)
    if view.text is None:
        return FeedbackOut(feedback=[], message="You have not submitted a text")

    return FeedbackOut(
        feedback=[
            FeedbackItem(id=str(r.id), content=r.content, created_at=r.created_at, read_at=r.read_at)
            for r in view.reviews
        ]
    )
