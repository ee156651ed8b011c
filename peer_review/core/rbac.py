from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from peer_review.core.security import get_current_user
from peer_review.db.session import get_db
from peer_review.models.rbac import Role, UserRole
from peer_review.models.user import User

# Teachers moderate: create assignments, distribute, reject reviews, deactivate students.
TEACHER = "TEACHER"
STUDENT = "STUDENT"


def get_user_role_names(db: Session, user: User) -> set[str]:
    rows = (
        db.query(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user.id)
        .all()
    )
    return {r[0] for r in rows}


def is_teacher(db: Session, user: User) -> bool:
    return TEACHER in get_user_role_names(db, user)


def require_roles(*required: str):
    """
    Usage:
      Depends(require_roles(TEACHER))
      Depends(require_teacher)  # same thing
    """
    required_set = set(required)

    def _dep(
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ) -> User:
        if not (get_user_role_names(db, user) & required_set):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden. Requires one of: {sorted(required_set)}",
            )
        return user

    return _dep


require_teacher = require_roles(TEACHER)
