import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from peer_review.core.access import get_user_or_404
from peer_review.core.audit import log_event
from peer_review.core.distribution import reconcile_deactivation
from peer_review.core.rbac import require_teacher
from peer_review.db.session import get_db
from peer_review.models.user import User
from peer_review.schemas.user import DeactivateOut

router = APIRouter(prefix="/users", tags=["users"])


@router.patch("/{user_id}/deactivate", response_model=DeactivateOut)
def deactivate_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    """
    Remove a student from the class: they leave the reviewer pool, and anyone
    with pending work on their text is routed to another text.
    """
    user = get_user_or_404(db, user_id)

    if user.is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admin users cannot be deactivated")

    if user.is_active:
        user.is_active = False
        log_event(
            db=db,
            actor=current_user,
            action="USER_DEACTIVATED",
            entity_type="user",
            entity_id=user.id,
            metadata={"email": user.email},
        )
        db.flush()

    reassigned = reconcile_deactivation(db, user.id, actor=current_user)
    db.commit()

    return DeactivateOut(
        user_id=str(user.id),
        is_active=user.is_active,
        reassigned=reassigned,
        message=f"User deactivated. {reassigned} review(s) reassigned.",
    )
