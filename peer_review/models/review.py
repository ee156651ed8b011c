import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Text as TextType, Uuid, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peer_review.core.phase import utcnow
from peer_review.db.base import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        # One live review per review assignment; rejected ones are kept for audit.
        Index(
            "uq_reviews_live_per_assignment",
            "review_assignment_id",
            unique=True,
            postgresql_where=sql_text("rejected_at IS NULL"),
            sqlite_where=sql_text("rejected_at IS NULL"),
        ),
        Index("ix_reviews_text", "text_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    review_assignment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("review_assignments.id", ondelete="CASCADE"), nullable=False
    )
    text_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("texts.id", ondelete="CASCADE"), nullable=False)
    reviewer_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    content: Mapped[str] = mapped_column(TextType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    review_assignment = relationship("ReviewAssignment")
    text = relationship("Text")
