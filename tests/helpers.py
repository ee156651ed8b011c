from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from peer_review.core.phase import Phase, deadlines_for_phase
from peer_review.core.rbac import TEACHER
from peer_review.models.assignment import Assignment
from peer_review.models.rbac import Role, UserRole
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User

TEXT_BODY = "A short essay about why peer review makes writing better for everyone involved."


def ensure_role(db, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r

def create_user(db, email: str, full_name="User", is_admin=False, is_active=True) -> User:
    u = User(email=email, full_name=full_name, is_active=is_active, is_admin=is_admin)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u

def grant_role(db, user: User, role_name: str):
    role = ensure_role(db, role_name)
    exists = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role_id == role.id).one_or_none()
    if not exists:
        db.add(UserRole(user_id=user.id, role_id=role.id))
        db.commit()

def create_teacher(db, email="teacher@school.test") -> User:
    t = create_user(db, email, "Teacher", is_admin=True)
    grant_role(db, t, TEACHER)
    return t

def create_students(db, n: int, prefix="student") -> list[User]:
    return [create_user(db, f"{prefix}{i}@school.test", f"Student {i}") for i in range(n)]


def create_assignment(
    db: Session,
    *,
    created_by: User,
    phase: Phase = Phase.WRITING,
    min_reviews: int = 1,
    feedback_open: bool = False,
    feedback_deadline: datetime | None = None,
    distribution_done: bool = False,
) -> Assignment:
    write_deadline, review_deadline = deadlines_for_phase(phase)
    a = Assignment(
        title="Argumentative essay",
        write_deadline=write_deadline,
        review_deadline=review_deadline,
        feedback_deadline=feedback_deadline,
        min_reviews=min_reviews,
        feedback_open=feedback_open,
        distribution_done=distribution_done,
        created_by_user_id=created_by.id,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def set_phase(db: Session, assignment: Assignment, phase: Phase) -> Assignment:
    assignment.write_deadline, assignment.review_deadline = deadlines_for_phase(phase)
    db.commit()
    db.refresh(assignment)
    return assignment


def create_text(db: Session, assignment: Assignment, author: User, content: str = TEXT_BODY) -> Text:
    t = Text(assignment_id=assignment.id, author_id=author.id, content=content)
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


def create_review_assignment(
    db: Session,
    assignment: Assignment,
    text: Text,
    reviewer: User,
    *,
    completed=False,
    is_active=True,
) -> ReviewAssignment:
    ra = ReviewAssignment(
        assignment_id=assignment.id,
        text_id=text.id,
        reviewer_id=reviewer.id,
        completed=completed,
        is_active=is_active,
    )
    db.add(ra)
    db.commit()
    db.refresh(ra)
    return ra


def create_review(
    db: Session,
    ra: ReviewAssignment,
    content="Clear thesis, but the second paragraph needs an example.",
    rejected=False,
) -> Review:
    """Files a review directly and marks its assignment completed."""
    r = Review(
        review_assignment_id=ra.id,
        text_id=ra.text_id,
        reviewer_id=ra.reviewer_id,
        content=content,
        rejected_at=datetime.now(timezone.utc) - timedelta(minutes=1) if rejected else None,
    )
    db.add(r)
    if not rejected:
        ra.completed = True
    db.commit()
    db.refresh(r)
    return r


def active_review_assignments(db: Session, assignment: Assignment) -> list[ReviewAssignment]:
    return (
        db.query(ReviewAssignment)
        .filter(ReviewAssignment.assignment_id == assignment.id, ReviewAssignment.is_active.is_(True))
        .all()
    )


def headers(user: User) -> dict[str, str]:
    return {"X-User-Email": user.email}
