"""Initial schema — users, note_requests, messages, ratings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(10), nullable=False),
        sa.Column("phone", sa.String(15), nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0.00"),
        sa.Column("total_orders", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "note_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("writer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("topic", sa.Text, nullable=False),
        sa.Column("note_type", sa.String(20), nullable=False),
        sa.Column("pages", sa.Integer, nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("language", sa.String(20), nullable=False, server_default="English"),
        sa.Column("delivery_location", sa.String(200), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0.00"),
        sa.Column("payment_type", sa.String(10), nullable=False, server_default="free"),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("reference_files", sa.JSON, nullable=False),
        sa.Column("special_instructions", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_note_requests_status", "note_requests", ["status"])
    op.create_index("ix_note_requests_writer_id", "note_requests", ["writer_id"])
    op.create_index("ix_note_requests_student_id", "note_requests", ["student_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("request_id", sa.Integer, sa.ForeignKey("note_requests.id"), nullable=False),
        sa.Column("sender_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("receiver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("message", sa.Text, nullable=False, server_default=""),
        sa.Column("message_type", sa.String(10), nullable=False, server_default="text"),
        sa.Column("file_path", sa.String(255), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
    )
    op.create_index("ix_messages_request_timestamp", "messages", ["request_id", "timestamp"])

    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("request_id", sa.Integer, sa.ForeignKey("note_requests.id"), nullable=False),
        sa.Column("student_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("writer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("score", sa.Integer, nullable=False),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("request_id", name="uq_ratings_request_id"),
        sa.CheckConstraint("score >= 1 AND score <= 5", name="ck_ratings_score_range"),
    )
    op.create_index("ix_ratings_writer_id", "ratings", ["writer_id"])


def downgrade() -> None:
    op.drop_index("ix_ratings_writer_id", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("ix_messages_request_timestamp", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_note_requests_student_id", table_name="note_requests")
    op.drop_index("ix_note_requests_writer_id", table_name="note_requests")
    op.drop_index("ix_note_requests_status", table_name="note_requests")
    op.drop_table("note_requests")
    op.drop_table("users")
