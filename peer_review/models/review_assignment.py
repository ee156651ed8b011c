import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Uuid, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peer_review.core.phase import utcnow
from peer_review.db.base import Base


class ReviewAssignment(Base):
    """Directs one reviewer to one text. Superseded rows are soft-deleted via is_active."""

    __tablename__ = "review_assignments"
    __table_args__ = (
        # At most one *active* pairing per (text, reviewer); inactive history may repeat.
        Index(
            "uq_review_assignments_active_pair",
            "text_id",
            "reviewer_id",
            unique=True,
            postgresql_where=sql_text("is_active"),
            sqlite_where=sql_text("is_active = 1"),
        ),
        Index("ix_review_assignments_assignment_reviewer", "assignment_id", "reviewer_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    assignment_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    text_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("texts.id", ondelete="CASCADE"), nullable=False)
    reviewer_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    text = relationship("Text")
