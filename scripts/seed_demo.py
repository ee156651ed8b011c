from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from peer_review.core.phase import phase_of
from peer_review.core.rbac import STUDENT, TEACHER
from peer_review.db.session import SessionLocal
from peer_review.models.assignment import Assignment
from peer_review.models.rbac import Role, UserRole
from peer_review.models.text import Text
from peer_review.models.user import User

STUDENTS = [
    ("anna@school.test", "Anna Berg"),
    ("bilal@school.test", "Bilal Khan"),
    ("cora@school.test", "Cora Lind"),
    ("dag@school.test", "Dag Moe"),
]

DEMO_TEXT = (
    "Peer review works best when the feedback is concrete: point at a sentence, "
    "say what it does for the reader, and suggest one change."
)


def get_or_create_user(db: Session, email: str, full_name: str, is_admin_flag: bool = False) -> User:
    u = db.query(User).filter(User.email == email).one_or_none()
    if u:
        return u
    u = User(email=email, full_name=full_name, is_active=True, is_admin=is_admin_flag)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def get_or_create_role(db: Session, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


def ensure_user_role(db: Session, user_id, role_id):
    ur = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .one_or_none()
    )
    if ur:
        return ur
    ur = UserRole(user_id=user_id, role_id=role_id)
    db.add(ur)
    db.commit()
    db.refresh(ur)
    return ur


def get_or_create_assignment(db: Session, title: str, created_by_user_id) -> Assignment:
    a = db.query(Assignment).filter(Assignment.title == title).one_or_none()
    if a:
        return a
    now = datetime.utcnow()
    a = Assignment(
        title=title,
        description="Write a short argumentative paragraph.",
        write_deadline=now + timedelta(days=3),
        review_deadline=now + timedelta(days=7),
        min_reviews=1,
        created_by_user_id=created_by_user_id,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def get_or_create_text(db: Session, assignment: Assignment, author: User) -> Text:
    t = (
        db.query(Text)
        .filter(Text.assignment_id == assignment.id, Text.author_id == author.id)
        .one_or_none()
    )
    if t:
        return t
    t = Text(assignment_id=assignment.id, author_id=author.id, content=f"{author.full_name}: {DEMO_TEXT}")
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


def main():
    db = SessionLocal()
    try:
        # ---- Roles ----
        teacher_role = get_or_create_role(db, TEACHER)
        student_role = get_or_create_role(db, STUDENT)

        # ---- Users ----
        teacher = get_or_create_user(db, "teacher@school.test", "Teacher Local", is_admin_flag=True)
        ensure_user_role(db, teacher.id, teacher_role.id)

        students = []
        for email, name in STUDENTS:
            s = get_or_create_user(db, email, name)
            ensure_user_role(db, s.id, student_role.id)
            students.append(s)

        # ---- Assignment (writing phase) + one text per student ----
        assignment = get_or_create_assignment(db, "Demo Essay", created_by_user_id=teacher.id)
        for s in students:
            get_or_create_text(db, assignment, s)

        print("\n=== Demo Seed Complete ===")
        print("Users (use as X-User-Email header):")
        print(f"  teacher:  {teacher.email}")
        for s in students:
            print(f"  student:  {s.email}")

        print("\nAssignment:")
        print(f"  assignment_id: {assignment.id}")
        print(f"  phase:         {phase_of(assignment).value}")

        print("\nNext actions:")
        print("  1) (Teacher) Move to review: POST /assignments/{assignment_id}/phase {\"phase\": \"review\"}")
        print("  2) (Teacher) Distribute:     POST /assignments/{assignment_id}/distribute")
        print("  3) (Student) See queue:      GET  /assignments/{assignment_id}/my-review-assignments")
        print("  4) (Student) Submit review:  POST /reviews")
        print("  5) (Student) Request more:   POST /assignments/{assignment_id}/request-more")
        print()

    finally:
        db.close()


if __name__ == "__main__":
    main()
