from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum


class Phase(str, Enum):
    WRITING = "writing"
    REVIEW = "review"
    CLOSED = "closed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes (SQLite round-trips drop tzinfo) are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_phase(write_deadline: datetime, review_deadline: datetime, now: datetime | None = None) -> Phase:
    """
    writing  while now <  write_deadline
    review   while write_deadline <= now < review_deadline
    closed   once  now >= review_deadline
    """
    current = as_utc(now) if now is not None else utcnow()
    if current < as_utc(write_deadline):
        return Phase.WRITING
    if current < as_utc(review_deadline):
        return Phase.REVIEW
    return Phase.CLOSED


def phase_of(assignment, now: datetime | None = None) -> Phase:
    return resolve_phase(assignment.write_deadline, assignment.review_deadline, now)


def can_submit_text(phase: Phase) -> bool:
    return phase == Phase.WRITING


def can_edit_text(phase: Phase, distribution_done: bool) -> bool:
    return phase == Phase.WRITING and not distribution_done


def can_review(phase: Phase) -> bool:
    return phase == Phase.REVIEW


def is_read_only(phase: Phase) -> bool:
    return phase == Phase.CLOSED


def deadlines_for_phase(phase: Phase, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Deadlines that put an assignment into `phase` right now (teacher override).
    Returns (write_deadline, review_deadline).
    """
    current = as_utc(now) if now is not None else utcnow()
    far_future = current + timedelta(days=365)

    if phase == Phase.WRITING:
        return far_future, far_future + timedelta(days=1)
    if phase == Phase.REVIEW:
        return current - timedelta(seconds=1), far_future
    return current - timedelta(seconds=2), current - timedelta(seconds=1)
