"""Message ORM — append-only chat log entry scoped to one request.

Invariants:
    - sender_id and receiver_id are the request's student and writer
    - message is '' (never NULL) when only a file was sent
    - Only is_read ever changes after insert (bulk, by the receiver's fetch)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notehub.db.base import Base


class Message(Base):
    """Chat message between the two participants of a request."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_request_timestamp", "request_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("note_requests.id"), nullable=False,
    )
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message_type: Mapped[str] = mapped_column(
        String(10), nullable=False, default="text",
    )
    file_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    request: Mapped["NoteRequest"] = relationship(
        "NoteRequest", back_populates="messages",
    )
    sender: Mapped["User"] = relationship(
        "User", foreign_keys=[sender_id], lazy="selectin",
    )
