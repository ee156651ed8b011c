import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from peer_review.core.access import get_assignment_or_404
from peer_review.core.distribution import request_additional_review
from peer_review.core.security import get_current_user
from peer_review.db.session import get_db
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User
from peer_review.schemas.review_assignment import MyReviewAssignmentOut, ReviewSummary

router = APIRouter(prefix="/assignments/{assignment_id}", tags=["review-assignments"])


def to_out(ra: ReviewAssignment, text: Text, review: Review | None) -> MyReviewAssignmentOut:
    return MyReviewAssignmentOut(
        id=str(ra.id),
        text_id=str(text.id),
        text_content=text.content,
        text_created_at=text.created_at,
        completed=ra.completed,
        review=(
            ReviewSummary(id=str(review.id), content=review.content, created_at=review.created_at)
            if review
            else None
        ),
    )


@router.get("/my-review-assignments", response_model=list[MyReviewAssignmentOut])
def my_review_assignments(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The reviewer's active queue, oldest first. Rejected reviews are not shown."""
    get_assignment_or_404(db, assignment_id)

    rows = (
        db.query(ReviewAssignment, Text)
        .join(Text, Text.id == ReviewAssignment.text_id)
        .filter(
            ReviewAssignment.assignment_id == assignment_id,
            ReviewAssignment.reviewer_id == current_user.id,
            ReviewAssignment.is_active.is_(True),
        )
        .order_by(ReviewAssignment.created_at.asc())
        .all()
    )

    live_reviews = {
        r.review_assignment_id: r
        for r in db.query(Review).filter(
            Review.review_assignment_id.in_([ra.id for ra, _ in rows]),
            Review.rejected_at.is_(None),
        )
    } if rows else {}

    return [to_out(ra, text, live_reviews.get(ra.id)) for ra, text in rows]


@router.post("/request-more", response_model=MyReviewAssignmentOut, status_code=status.HTTP_201_CREATED)
def request_more(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = get_assignment_or_404(db, assignment_id)

    ra = request_additional_review(db, assignment, current_user)
    if ra is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No more texts available for review",
        )
    db.commit()

    return to_out(ra, db.get(Text, ra.text_id), None)
