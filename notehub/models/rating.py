"""Rating ORM — a student's score for the writer of a completed request.

Invariants:
    - At most one rating per request (UNIQUE request_id)
    - score between 1 and 5 (CHECK constraint)
    - Immutable once created
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Text, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notehub.db.base import Base


class Rating(Base):
    """Post-completion rating of a writer."""
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("request_id", name="uq_ratings_request_id"),
        CheckConstraint("score >= 1 AND score <= 5", name="ck_ratings_score_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("note_requests.id"), nullable=False,
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    writer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    request: Mapped["NoteRequest"] = relationship(
        "NoteRequest", back_populates="rating",
    )
