"""Chat Service — append-only per-request conversation between student and writer.

Invariants:
    - Only the request's student or writer may read or write its chat
    - Every message has exactly one receiver: the other participant
    - Listing marks messages addressed to the caller as read (bulk, idempotent)
    - The returned list reflects read flags as they were before this fetch
    - new_message is published to the request topic only, after commit

Design Decisions:
    - Attachment bytes reach the blob store only after all checks passed (no orphan files
      for rejected messages)
    - sender_name taken from the request's loaded participants (no extra query)
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.core.domain_types import Identity
from notehub.core.errors import ResourceNotFoundError
from notehub.core.events import new_message_event, request_topic, serialize_message
from notehub.core.lifecycle_rules import is_participant
from notehub.core.message_rules import (
    check_chat_participant, infer_message_type, normalize_text, resolve_receiver,
)
from notehub.core.repository_protocols import BlobStore, Upload
from notehub.infrastructure.notification_hub import NotificationHub
from notehub.models.message import Message
from notehub.models.note_request import NoteRequest

logger = logging.getLogger(__name__)


class ChatService:
    """Send and list chat messages for a request."""

    def __init__(
        self,
        db: AsyncSession,
        hub: NotificationHub | None = None,
        blob_store: BlobStore | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.db = db
        self.hub = hub
        self.blob_store = blob_store
        self._now = clock

    async def send(
        self,
        identity: Identity,
        request_id: int,
        text: str | None = None,
        upload: Upload | None = None,
    ) -> dict:
        request = await self._load_request(request_id)
        receiver_id = resolve_receiver(request, identity.id)
        body = normalize_text(text, upload is not None)

        file_path = None
        media_type = None
        if upload is not None:
            if self.blob_store is None:
                raise RuntimeError("Blob store not configured")
            file_path = await self.blob_store.store(upload.data, upload.metadata)
            media_type = upload.metadata.media_type

        message = Message(
            request_id=request.id,
            sender_id=identity.id,
            receiver_id=receiver_id,
            message=body,
            message_type=infer_message_type(media_type, upload is not None).value,
            file_path=file_path,
            timestamp=self._now(),
            is_read=False,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)

        sender = request.student if identity.id == request.student_id else request.writer
        payload = serialize_message(message, sender.username)
        logger.info(
            "Message sent",
            extra={"request_id": request.id, "user_id": identity.id},
        )
        if self.hub is not None:
            self.hub.publish(new_message_event(payload), [request_topic(request.id)])
        return payload

    async def list_messages(self, identity: Identity, request_id: int) -> list[dict]:
        request = await self._load_request(request_id)
        check_chat_participant(request, identity.id)

        result = await self.db.execute(
            select(Message)
            .where(Message.request_id == request_id)
            .order_by(Message.timestamp.asc(), Message.id.asc())
            .execution_options(populate_existing=True),
        )
        messages = [
            serialize_message(m, m.sender.username)
            for m in result.scalars().all()
        ]

        await self.db.execute(
            update(Message)
            .where(
                Message.request_id == request_id,
                Message.receiver_id == identity.id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return messages

    async def authorize_join(self, identity: Identity, request_id: int) -> None:
        """Channel join hardening: only participants may subscribe to a request topic."""
        request = await self.db.get(NoteRequest, request_id)
        if request is None or not is_participant(request, identity.id):
            raise ResourceNotFoundError("Request", str(request_id))

    async def _load_request(self, request_id: int) -> NoteRequest:
        request = await self.db.get(NoteRequest, request_id, populate_existing=True)
        if request is None:
            raise ResourceNotFoundError("Request", str(request_id))
        return request
