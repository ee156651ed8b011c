from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from peer_review.db.session import get_db
from peer_review.models.user import User


def get_current_user(
    x_user_email: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """
    DEV AUTH: pass X-User-Email header to act as a student or teacher.
    Example: X-User-Email: teacher@school.test
    Deactivated users are rejected here, so they can no longer submit or review.
    """
    if not x_user_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Email header (dev auth)",
        )

    user = db.query(User).filter(User.email == x_user_email).one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")
    return user
