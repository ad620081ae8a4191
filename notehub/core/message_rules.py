"""Message Rules — pure checks and derivations for the per-request chat log.

Invariants:
    - Sender and receiver are always the request's student and writer (in either order)
    - A message carries non-blank text, an attachment, or both
    - message_type is derived from the attachment's media type, never client-supplied

Design Decisions:
    - Receiver is derived from the request row instead of trusting a client field
    - Chat requires an assigned writer: an open request has no counterpart to address
"""

from notehub.core.domain_types import MessageType
from notehub.core.errors import (
    ErrorContext, ForbiddenError, InvalidMessageError, InvalidStateError,
)
from notehub.core.lifecycle_rules import is_participant
from notehub.core.repository_protocols import RequestLike


def check_chat_participant(request: RequestLike, user_id: int) -> None:
    if not is_participant(request, user_id):
        raise ForbiddenError(
            "Only the request's student or writer can access its chat",
            ErrorContext(request_id=request.id, user_id=user_id),
        )


def resolve_receiver(request: RequestLike, sender_id: int) -> int:
    """The other participant of the conversation."""
    check_chat_participant(request, sender_id)
    if request.writer_id is None:
        raise InvalidStateError(
            "Chat opens once a writer accepts the request",
            request.status,
            ErrorContext(request_id=request.id, user_id=sender_id),
        )
    if sender_id == request.student_id:
        return request.writer_id
    return request.student_id


def normalize_text(text: str | None, has_attachment: bool) -> str:
    """Return the stored message body; empty string when only a file is sent."""
    body = (text or "").strip()
    if not body and not has_attachment:
        raise InvalidMessageError()
    return body


def infer_message_type(media_type: str | None, has_attachment: bool) -> MessageType:
    if not has_attachment:
        return MessageType.TEXT
    if media_type and media_type.lower().startswith("image/"):
        return MessageType.IMAGE
    return MessageType.FILE
