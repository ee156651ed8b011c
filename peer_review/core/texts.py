from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from peer_review.core.audit import log_event
from peer_review.core.errors import NotFound, PhaseViolation
from peer_review.core.phase import can_edit_text, can_submit_text, phase_of
from peer_review.models.assignment import Assignment
from peer_review.models.text import Text
from peer_review.models.user import User


def get_own_text(db: Session, assignment_id: uuid.UUID, author_id: uuid.UUID) -> Text | None:
    return (
        db.query(Text)
        .filter(Text.assignment_id == assignment_id, Text.author_id == author_id)
        .one_or_none()
    )


def submit_text(
    db: Session,
    assignment: Assignment,
    author: User,
    content: str,
    *,
    now: datetime | None = None,
) -> tuple[Text, bool]:
    """
    Create the author's text, or overwrite it while editing is still allowed.
    Returns (text, created).
    """
    phase = phase_of(assignment, now)
    if not can_submit_text(phase):
        raise PhaseViolation("The writing deadline has passed")

    text = get_own_text(db, assignment.id, author.id)
    if text is not None:
        if not can_edit_text(phase, assignment.distribution_done):
            raise PhaseViolation("The text can no longer be edited")
        text.content = content
        db.flush()

        log_event(
            db=db,
            actor=author,
            action="TEXT_UPDATED",
            entity_type="text",
            entity_id=text.id,
            metadata={"assignment_id": assignment.id},
        )
        return text, False

    text = Text(assignment_id=assignment.id, author_id=author.id, content=content)
    db.add(text)
    db.flush()

    log_event(
        db=db,
        actor=author,
        action="TEXT_SUBMITTED",
        entity_type="text",
        entity_id=text.id,
        metadata={"assignment_id": assignment.id},
    )
    return text, True


def edit_text(
    db: Session,
    assignment: Assignment,
    author: User,
    content: str,
    *,
    now: datetime | None = None,
) -> Text:
    if not can_edit_text(phase_of(assignment, now), assignment.distribution_done):
        raise PhaseViolation("The text can no longer be edited (deadline passed or reviews distributed)")

    text = get_own_text(db, assignment.id, author.id)
    if text is None:
        raise NotFound("No text submitted for this assignment")

    text.content = content
    db.flush()

    log_event(
        db=db,
        actor=author,
        action="TEXT_UPDATED",
        entity_type="text",
        entity_id=text.id,
        metadata={"assignment_id": assignment.id},
    )
    return text
