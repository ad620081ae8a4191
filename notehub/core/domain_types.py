"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, RequestId, MessageId wrap ints — never use bare int ids in domain logic signatures
    - Score is an integer 1–5
    - All valid states encoded as Enums — no raw string matching
    - Identity is immutable once decoded from a token

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders; .value matches DB column contents
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
RequestId = NewType("RequestId", int)
MessageId = NewType("MessageId", int)


# ─── Value Types ─────────────────────────────────────────────────

Score = NewType("Score", int)          # 1–5
BlobRef = NewType("BlobRef", str)      # opaque blob store reference


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    """Marketplace roles — maps to users.role."""
    STUDENT = "student"
    WRITER = "writer"


class RequestStatus(str, Enum):
    """Request lifecycle states — maps to note_requests.status."""
    OPEN = "open"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NoteType(str, Enum):
    HANDWRITTEN = "handwritten"
    PRINTED = "printed"


class PaymentType(str, Enum):
    """Stored metadata only — no settlement logic."""
    FREE = "free"
    PAID = "paid"
    COD = "cod"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class EventType(str, Enum):
    """Real-time channel event names."""
    REQUEST_ACCEPTED = "request_accepted"
    STATUS_UPDATED = "status_updated"
    NEW_MESSAGE = "new_message"


# ─── Lifecycle tables ────────────────────────────────────────────

TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED})

# Targets reachable through transition(); OPEN -> ACCEPTED only via accept()
TRANSITION_TARGETS = frozenset({
    RequestStatus.IN_PROGRESS,
    RequestStatus.READY,
    RequestStatus.DELIVERED,
    RequestStatus.COMPLETED,
    RequestStatus.CANCELLED,
})

# Immediate predecessor of each forward target (strict mode only)
FORWARD_PREDECESSOR = {
    RequestStatus.IN_PROGRESS: RequestStatus.ACCEPTED,
    RequestStatus.READY: RequestStatus.IN_PROGRESS,
    RequestStatus.DELIVERED: RequestStatus.READY,
    RequestStatus.COMPLETED: RequestStatus.DELIVERED,
}


@dataclass(frozen=True)
class Identity:
    """Caller identity as carried by a verified bearer token.

    The role is advisory: data-scoped checks compare ids against persisted
    ownership columns, never the role claim alone.
    """
    id: UserId
    username: str
    role: UserRole
