"""initial peer review schema

Revision ID: 5c1f0e7a9b21
Revises:
Create Date: 2026-10-17 09:12:44.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "5c1f0e7a9b21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )

    op.create_table(
        "assignments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("write_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("review_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("feedback_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("min_reviews", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("distribution_done", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("feedback_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("min_reviews BETWEEN 1 AND 10", name="ck_assignments_min_reviews"),
        sa.CheckConstraint("review_deadline > write_deadline", name="ck_assignments_deadline_order"),
    )

    op.create_table(
        "texts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("assignment_id", sa.Uuid(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("assignment_id", "author_id", name="uq_texts_assignment_author"),
    )
    op.create_index("ix_texts_assignment_id", "texts", ["assignment_id"])
    op.create_index("ix_texts_author_id", "texts", ["author_id"])

    op.create_table(
        "review_assignments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("assignment_id", sa.Uuid(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text_id", sa.Uuid(), sa.ForeignKey("texts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reviewer_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    # Partial unique index: inactive (superseded) pairings are kept as history
    op.create_index(
        "uq_review_assignments_active_pair",
        "review_assignments",
        ["text_id", "reviewer_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )
    op.create_index(
        "ix_review_assignments_assignment_reviewer",
        "review_assignments",
        ["assignment_id", "reviewer_id"],
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "review_assignment_id",
            sa.Uuid(),
            sa.ForeignKey("review_assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text_id", sa.Uuid(), sa.ForeignKey("texts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reviewer_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_reviews_live_per_assignment",
        "reviews",
        ["review_assignment_id"],
        unique=True,
        postgresql_where=sa.text("rejected_at IS NULL"),
        sqlite_where=sa.text("rejected_at IS NULL"),
    )
    op.create_index("ix_reviews_text", "reviews", ["text_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("event_metadata", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("ix_reviews_text", table_name="reviews")
    op.drop_index("uq_reviews_live_per_assignment", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_review_assignments_assignment_reviewer", table_name="review_assignments")
    op.drop_index("uq_review_assignments_active_pair", table_name="review_assignments")
    op.drop_table("review_assignments")
    op.drop_index("ix_texts_author_id", table_name="texts")
    op.drop_index("ix_texts_assignment_id", table_name="texts")
    op.drop_table("texts")
    op.drop_table("assignments")
    op.drop_table("user_roles")
    op.drop_table("roles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
