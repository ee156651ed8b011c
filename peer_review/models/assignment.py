import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text as TextType, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from peer_review.core.phase import utcnow
from peer_review.db.base import Base


class Assignment(Base):
    """A classroom task. Its phase is derived from the deadlines, never stored."""

    __tablename__ = "assignments"
    __table_args__ = (
        CheckConstraint("min_reviews BETWEEN 1 AND 10", name="ck_assignments_min_reviews"),
        CheckConstraint("review_deadline > write_deadline", name="ck_assignments_deadline_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(TextType, nullable=True)

    write_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    review_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    feedback_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    min_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    distribution_done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    feedback_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
