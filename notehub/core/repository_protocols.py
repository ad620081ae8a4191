"""Boundary Protocols — structural contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Core rules receive ORM rows typed by these Protocols, never the ORM classes
    - Blob store and token provider accessed through Protocol types

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE the row protocols are never async themselves
"""

from dataclasses import dataclass
from typing import Protocol

from notehub.core.domain_types import BlobRef, Identity


class RequestLike(Protocol):
    """Structural contract for Request rows passed to lifecycle rules."""
    id: int
    student_id: int
    writer_id: int | None
    status: str


class UserLike(Protocol):
    """Structural contract for User rows passed to core rules."""
    id: int
    username: str
    role: str


@dataclass(frozen=True)
class BlobMetadata:
    """Metadata handed to the blob store alongside raw bytes."""
    filename: str
    media_type: str | None = None


@dataclass(frozen=True)
class Upload:
    """Raw file received at the boundary, not yet written to the blob store."""
    data: bytes
    metadata: BlobMetadata


class BlobStore(Protocol):
    """Contract for opaque file storage — implemented by infrastructure."""
    async def store(self, data: bytes, metadata: BlobMetadata) -> BlobRef: ...
    async def retrieve(self, reference: str) -> bytes: ...


class TokenProvider(Protocol):
    """Contract for bearer credential issue/verify — implemented by infrastructure."""
    def issue(self, identity: Identity) -> str: ...
    def verify(self, token: str) -> Identity: ...
