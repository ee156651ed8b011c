import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from peer_review.core.access import get_assignment_or_404
from peer_review.core.phase import can_edit_text, can_submit_text, phase_of
from peer_review.core.security import get_current_user
from peer_review.core.texts import edit_text, get_own_text, submit_text
from peer_review.db.session import get_db
from peer_review.models.text import Text
from peer_review.models.user import User
from peer_review.schemas.text import MyTextOut, TextOut, TextSubmit

router = APIRouter(prefix="/assignments/{assignment_id}/my-text", tags=["texts"])


def to_out(t: Text) -> TextOut:
    return TextOut(
        id=str(t.id),
        assignment_id=str(t.assignment_id),
        author_id=str(t.author_id),
        content=t.content,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


@router.get("", response_model=MyTextOut)
def get_my_text(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = get_assignment_or_404(db, assignment_id)
    text = get_own_text(db, assignment.id, current_user.id)
    phase = phase_of(assignment)

    return MyTextOut(
        text=to_out(text) if text else None,
        can_edit=can_edit_text(phase, assignment.distribution_done),
        can_submit=can_submit_text(phase),
    )


@router.post("", response_model=TextOut, status_code=status.HTTP_201_CREATED)
def post_my_text(
    assignment_id: uuid.UUID,
    payload: TextSubmit,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Submit the text, or overwrite it while editing is still open."""
    assignment = get_assignment_or_404(db, assignment_id)

    text, created = submit_text(db, assignment, current_user, payload.content)
    db.commit()
    db.refresh(text)

    if not created:
        response.status_code = status.HTTP_200_OK
    return to_out(text)


@router.put("", response_model=TextOut)
def put_my_text(
    assignment_id: uuid.UUID,
    payload: TextSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = get_assignment_or_404(db, assignment_id)

    text = edit_text(db, assignment, current_user, payload.content)
    db.commit()
    db.refresh(text)
    return to_out(text)
