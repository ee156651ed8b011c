import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Text as TextType, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peer_review.core.phase import utcnow
from peer_review.db.base import Base


class Text(Base):
    __tablename__ = "texts"
    __table_args__ = (
        UniqueConstraint("assignment_id", "author_id", name="uq_texts_assignment_author"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    assignment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    content: Mapped[str] = mapped_column(TextType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    author = relationship("User")
