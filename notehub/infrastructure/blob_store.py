"""Blob Store — local-directory implementation of the opaque file store.

Invariants:
    - store() returns a flat reference "<timestamp>_<token>_<safe filename>" (no path separators)
    - retrieve() only resolves references inside the upload root; anything else is NotFound
    - IO failures surface as BlobStoreError (500), never as raw OSError

Design Decisions:
    - aiofiles for non-blocking writes/reads (large uploads must not stall the event loop)
    - Random token in the reference: two uploads of "notes.pdf" in the same second never collide
    - Media type recovered from the filename extension (mimetypes) when serving downloads
"""

import logging
import mimetypes
import os
import re
import secrets
from datetime import datetime, timezone

import aiofiles

from notehub.core.domain_types import BlobRef
from notehub.core.errors import BlobStoreError, ResourceNotFoundError
from notehub.core.repository_protocols import BlobMetadata

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_REFERENCE_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def _safe_filename(filename: str) -> str:
    base = os.path.basename(filename.replace("\\", "/")) or "upload"
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:120] or "upload"


def guess_media_type(reference: str) -> str:
    media_type, _ = mimetypes.guess_type(reference)
    return media_type or "application/octet-stream"


class LocalBlobStore:
    """Files under a single root directory, addressed by flat references."""

    def __init__(self, root: str):
        self.root = root

    def ensure_root(self) -> None:
        os.makedirs(self.root, exist_ok=True)

    async def store(self, data: bytes, metadata: BlobMetadata) -> BlobRef:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        reference = (
            f"{timestamp}_{secrets.token_hex(4)}_{_safe_filename(metadata.filename)}"
        )
        try:
            self.ensure_root()
            async with aiofiles.open(os.path.join(self.root, reference), "wb") as out:
                await out.write(data)
        except OSError as e:
            logger.error(f"Blob write failed: {e}")
            raise BlobStoreError(str(e.strerror or e), "store")
        logger.info(f"Stored blob {reference} ({len(data)} bytes)")
        return BlobRef(reference)

    async def retrieve(self, reference: str) -> bytes:
        if not _REFERENCE_PATTERN.match(reference) or reference.startswith("."):
            raise ResourceNotFoundError("File", reference)
        path = os.path.join(self.root, reference)
        if not os.path.isfile(path):
            raise ResourceNotFoundError("File", reference)
        try:
            async with aiofiles.open(path, "rb") as src:
                return await src.read()
        except OSError as e:
            logger.error(f"Blob read failed: {e}")
            raise BlobStoreError(str(e.strerror or e), "retrieve")


# Singleton (initialized on startup)
blob_store: LocalBlobStore | None = None


def init_blob_store(root: str) -> LocalBlobStore:
    global blob_store
    blob_store = LocalBlobStore(root)
    blob_store.ensure_root()
    return blob_store


def get_blob_store() -> LocalBlobStore:
    """FastAPI dependency for the blob store."""
    if not blob_store:
        raise RuntimeError("Blob store not initialized")
    return blob_store
