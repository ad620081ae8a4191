"""File Service — download of stored blobs, scoped to the request they belong to.

Invariants:
    - A chat attachment is readable only by the participants of its request
    - A reference file is readable by whoever can see its request (listFor scoping)
    - Unknown references and references the caller may not read are the same 404

Design Decisions:
    - Ownership resolved from the rows that point at the blob (messages.file_path,
      note_requests.reference_files), so the blob store stays a dumb key/value store
    - reference_files is a JSON list: a text LIKE narrows the candidates, then the
      decoded list is checked exactly
"""

import logging

from sqlalchemy import String, cast, select
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.core.domain_types import Identity
from notehub.core.errors import ResourceNotFoundError
from notehub.core.lifecycle_rules import can_read_file
from notehub.core.repository_protocols import BlobStore
from notehub.models.message import Message
from notehub.models.note_request import NoteRequest

logger = logging.getLogger(__name__)


class FileService:
    """Authorized reads from the blob store."""

    def __init__(self, db: AsyncSession, blob_store: BlobStore):
        self.db = db
        self.blob_store = blob_store

    async def download(self, identity: Identity, reference: str) -> bytes:
        if not await self._may_read(identity, reference):
            logger.info(
                f"File {reference} refused",
                extra={"user_id": identity.id},
            )
            raise ResourceNotFoundError("File", reference)
        return await self.blob_store.retrieve(reference)

    async def _may_read(self, identity: Identity, reference: str) -> bool:
        attached_to = (await self.db.execute(
            select(Message.request_id).where(Message.file_path == reference),
        )).scalars().all()
        for request_id in set(attached_to):
            request = await self.db.get(NoteRequest, request_id)
            if request is not None and can_read_file(request, identity, attachment=True):
                return True

        candidates = await self.db.execute(
            select(NoteRequest).where(
                cast(NoteRequest.reference_files, String).contains(
                    reference, autoescape=True,
                ),
            ),
        )
        return any(
            reference in (request.reference_files or [])
            and can_read_file(request, identity, attachment=False)
            for request in candidates.scalars().all()
        )
