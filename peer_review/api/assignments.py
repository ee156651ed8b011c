import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from peer_review.core.access import get_assignment_or_404
from peer_review.core.audit import log_event
from peer_review.core.distribution import distribute_reviews
from peer_review.core.phase import can_edit_text, can_review, can_submit_text, deadlines_for_phase, phase_of
from peer_review.core.rbac import require_teacher
from peer_review.core.security import get_current_user
from peer_review.db.session import get_db
from peer_review.models.assignment import Assignment
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User
from peer_review.schemas.assignment import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentStats,
    DistributionOut,
    FeedbackToggleOut,
    PhaseOverride,
)

router = APIRouter(prefix="/assignments", tags=["assignments"])


def to_out(a: Assignment, now: datetime | None = None) -> AssignmentOut:
    phase = phase_of(a, now)
    return AssignmentOut(
        id=str(a.id),
        title=a.title,
        description=a.description,
        write_deadline=a.write_deadline,
        review_deadline=a.review_deadline,
        feedback_deadline=a.feedback_deadline,
        min_reviews=a.min_reviews,
        distribution_done=a.distribution_done,
        feedback_open=a.feedback_open,
        phase=phase,
        can_submit_text=can_submit_text(phase),
        can_edit_text=can_edit_text(phase, a.distribution_done),
        can_review=can_review(phase),
        created_at=a.created_at,
    )


@router.get("", response_model=list[AssignmentOut])
def list_assignments(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    rows = db.query(Assignment).order_by(Assignment.created_at.desc()).all()
    return [to_out(a) for a in rows]


@router.get("/{assignment_id}", response_model=AssignmentOut)
def get_assignment(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return to_out(get_assignment_or_404(db, assignment_id))


@router.post("", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    a = Assignment(
        title=payload.title,
        description=payload.description,
        write_deadline=payload.write_deadline,
        review_deadline=payload.review_deadline,
        feedback_deadline=payload.feedback_deadline,
        min_reviews=payload.min_reviews,
        distribution_done=False,
        feedback_open=False,
        created_by_user_id=current_user.id,
    )
    db.add(a)
    db.flush()  # ensures a.id exists for audit

    log_event(
        db=db,
        actor=current_user,
        action="ASSIGNMENT_CREATED",
        entity_type="assignment",
        entity_id=a.id,
        metadata={
            "title": payload.title,
            "write_deadline": payload.write_deadline,
            "review_deadline": payload.review_deadline,
            "min_reviews": payload.min_reviews,
        },
    )

    db.commit()
    db.refresh(a)
    return to_out(a)


@router.post("/{assignment_id}/phase", response_model=AssignmentOut)
def override_phase(
    assignment_id: uuid.UUID,
    payload: PhaseOverride,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    """
    Force the assignment into a phase by rewriting its deadlines.
    Phase itself is never stored.
    """
    a = get_assignment_or_404(db, assignment_id)
    before = {"write_deadline": a.write_deadline, "review_deadline": a.review_deadline}

    a.write_deadline, a.review_deadline = deadlines_for_phase(payload.phase)

    log_event(
        db=db,
        actor=current_user,
        action="ASSIGNMENT_PHASE_OVERRIDDEN",
        entity_type="assignment",
        entity_id=a.id,
        metadata={
            "phase": payload.phase.value,
            "before": before,
            "after": {"write_deadline": a.write_deadline, "review_deadline": a.review_deadline},
        },
    )

    db.commit()
    db.refresh(a)
    return to_out(a)


@router.post("/{assignment_id}/toggle-feedback", response_model=FeedbackToggleOut)
def toggle_feedback(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    a = get_assignment_or_404(db, assignment_id)
    a.feedback_open = not a.feedback_open

    log_event(
        db=db,
        actor=current_user,
        action="FEEDBACK_TOGGLED",
        entity_type="assignment",
        entity_id=a.id,
        metadata={"feedback_open": a.feedback_open},
    )
    db.commit()

    return FeedbackToggleOut(
        feedback_open=a.feedback_open,
        message="Feedback is now open" if a.feedback_open else "Feedback is now closed",
    )


@router.post("/{assignment_id}/distribute", response_model=DistributionOut)
def distribute(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    """
    Create the initial review assignments. Safe to call again: reviewers who
    already hold an active assignment are skipped.
    """
    get_assignment_or_404(db, assignment_id)

    result = distribute_reviews(db, assignment_id, actor=current_user)
    db.commit()

    message = f"{result.created} new review assignment(s) created"
    if not result.fully_covered:
        message += f"; {len(result.unassigned_reviewer_ids)} reviewer(s) could not be assigned a text"

    return DistributionOut(
        assignments_created=result.created,
        unassigned_reviewer_ids=[str(r) for r in result.unassigned_reviewer_ids],
        fully_covered=result.fully_covered,
        message=message,
    )


@router.get("/{assignment_id}/stats", response_model=AssignmentStats)
def get_assignment_stats(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User = Depends(require_teacher),
):
    a = get_assignment_or_404(db, assignment_id)

    total_texts = db.query(func.count(Text.id)).filter(Text.assignment_id == a.id).scalar() or 0

    review_assignments = db.query(ReviewAssignment).filter(ReviewAssignment.assignment_id == a.id).all()
    active = [ra for ra in review_assignments if ra.is_active]
    completed = sum(1 for ra in active if ra.completed)

    reviews = (
        db.query(Review)
        .join(ReviewAssignment, ReviewAssignment.id == Review.review_assignment_id)
        .filter(ReviewAssignment.assignment_id == a.id)
        .all()
    )
    rejected = sum(1 for r in reviews if r.rejected_at is not None)

    completion_rate = (completed / len(active) * 100) if active else 0.0

    return AssignmentStats(
        assignment_id=str(a.id),
        phase=phase_of(a),
        distribution_done=a.distribution_done,
        total_texts=total_texts,
        active_review_assignments=len(active),
        inactive_review_assignments=len(review_assignments) - len(active),
        completed_review_assignments=completed,
        total_reviews=len(reviews),
        rejected_reviews=rejected,
        completion_rate=round(completion_rate, 2),
    )
