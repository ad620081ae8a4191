"""NoteRequest ORM — a student's request for notes, claimed by at most one writer.

Invariants:
    - student_id is immutable after creation
    - writer_id is set exactly once, by the accept compare-and-set
    - writer_id non-null iff status not in {open, cancelled-before-acceptance}
    - status transitions: open -> accepted -> in_progress -> ready -> delivered -> completed,
      cancelled from any non-terminal state
    - Never deleted (soft lifecycle via status only)

Design Decisions:
    - reference_files as JSON list of blob references (at most settings.max_reference_files)
    - Owns its messages and at most one rating (cascade on the ORM side only)
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String, Text, Integer, Numeric, DateTime, JSON, ForeignKey, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notehub.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteRequest(Base):
    """Request aggregate root — owns its chat messages and rating."""
    __tablename__ = "note_requests"
    __table_args__ = (
        Index("ix_note_requests_status", "status"),
        Index("ix_note_requests_writer_id", "writer_id"),
        Index("ix_note_requests_student_id", "student_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    writer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    note_type: Mapped[str] = mapped_column(String(20), nullable=False)
    pages: Mapped[int] = mapped_column(Integer, nullable=False)
    deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    language: Mapped[str] = mapped_column(
        String(20), nullable=False, default="English",
    )
    delivery_location: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00"),
    )
    payment_type: Mapped[str] = mapped_column(
        String(10), nullable=False, default="free",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="open",
    )
    reference_files: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    special_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    student: Mapped["User"] = relationship(
        "User", foreign_keys=[student_id], lazy="selectin",
    )
    writer: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[writer_id], lazy="selectin",
    )
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="request",
        cascade="all, delete-orphan", lazy="noload",
    )
    rating: Mapped[Optional["Rating"]] = relationship(
        "Rating", back_populates="request", uselist=False, lazy="noload",
    )
