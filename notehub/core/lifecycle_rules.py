"""Lifecycle Rules — pure checks for creating, accepting and transitioning requests.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Violations raise NoteHubError subclasses; success returns a value or None
    - writer_id is non-null iff status not in {open, cancelled-before-acceptance}
    - Terminal requests (completed, cancelled) never transition again
    - Cancellation allowed from every non-terminal state, by either participant

Design Decisions:
    - transition_sources() feeds the WHERE clause of a single conditional UPDATE;
      diagnose_*() run only after that UPDATE matched zero rows, to pick the error
    - Ordering is permissive by default (any non-terminal, assigned source);
      strict=True requires the immediate forward predecessor
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from notehub.core.domain_types import (
    Identity, RequestStatus, UserRole, NoteType, PaymentType,
    TERMINAL_STATUSES, TRANSITION_TARGETS, FORWARD_PREDECESSOR,
)
from notehub.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, InvalidStateError,
    ResourceNotFoundError, ValidationError,
)
from notehub.core.repository_protocols import RequestLike

_NOT_FOUND_MESSAGE = "Request not found or unauthorized"


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on round-trip)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# --- create -------------------------------------------------------------------

def check_can_create(identity: Identity) -> None:
    if identity.role != UserRole.STUDENT:
        raise ForbiddenError("Only students can create requests")


def validate_new_request(
    *,
    pages: int,
    deadline: datetime,
    note_type: str,
    payment_type: str,
    amount: Decimal,
    now: datetime,
) -> None:
    """Engine-level validation; the one-hour lead time is checked by the caller."""
    if pages <= 0:
        raise ValidationError("pages must be a positive integer", field="pages")
    if as_utc(deadline) <= as_utc(now):
        raise ValidationError("deadline must be in the future", field="deadline")
    if note_type not in {t.value for t in NoteType}:
        raise ValidationError(f"Unknown note_type '{note_type}'", field="note_type")
    if payment_type not in {t.value for t in PaymentType}:
        raise ValidationError(
            f"Unknown payment_type '{payment_type}'", field="payment_type",
        )
    if amount < 0:
        raise ValidationError("amount cannot be negative", field="amount")


def check_deadline_lead(
    deadline: datetime, now: datetime, min_lead_minutes: int,
) -> None:
    """Advisory UX rule applied at the HTTP boundary."""
    if as_utc(deadline) < as_utc(now) + timedelta(minutes=min_lead_minutes):
        raise ValidationError(
            f"deadline must be at least {min_lead_minutes} minutes from now",
            field="deadline",
        )


# --- accept -------------------------------------------------------------------

def check_can_accept(persisted_role: str | None) -> None:
    """Role comes from the users row, not the token claim."""
    if persisted_role != UserRole.WRITER.value:
        raise ForbiddenError("Only writers can accept requests")


def diagnose_failed_accept(request: RequestLike | None, request_id: int):
    """Error for an accept whose compare-and-set matched no row."""
    if request is None:
        return ResourceNotFoundError("Request", str(request_id))
    return ConflictError(
        "Request not available",
        ErrorContext(request_id=request_id),
    )


# --- transition ---------------------------------------------------------------

def parse_target_status(value: str) -> RequestStatus:
    try:
        target = RequestStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status '{value}'", field="status",
        ) from None
    if target not in TRANSITION_TARGETS:
        raise ValidationError(f"Invalid status '{value}'", field="status")
    return target


def transition_sources(
    target: RequestStatus, strict: bool = False,
) -> frozenset[RequestStatus]:
    """Statuses from which `target` may be entered."""
    live = frozenset(RequestStatus) - TERMINAL_STATUSES
    if target == RequestStatus.CANCELLED:
        return live
    if strict:
        return frozenset({FORWARD_PREDECESSOR[target]})
    return live - {RequestStatus.OPEN}


def is_participant(request: RequestLike, user_id: int) -> bool:
    return user_id in (request.student_id, request.writer_id)


def diagnose_failed_transition(
    request: RequestLike | None,
    actor_id: int,
    request_id: int,
    target: RequestStatus,
    strict: bool = False,
):
    """Error for a transition whose conditional UPDATE matched no row."""
    if request is None or not is_participant(request, actor_id):
        return ResourceNotFoundError(
            "Request", str(request_id), message=_NOT_FOUND_MESSAGE,
        )
    ctx = ErrorContext(request_id=request_id, user_id=actor_id)
    current = RequestStatus(request.status)
    if current in TERMINAL_STATUSES:
        return InvalidStateError(
            f"Request is already {current.value}", current.value, ctx,
        )
    if request.writer_id is None and target != RequestStatus.CANCELLED:
        return InvalidStateError(
            "Request has not been accepted by a writer", current.value, ctx,
        )
    if current not in transition_sources(target, strict):
        return InvalidStateError(
            f"Cannot move from {current.value} to {target.value}",
            current.value, ctx,
        )
    return ConflictError("Request was modified concurrently", ctx)


# --- visibility ---------------------------------------------------------------

def is_visible_to(request: RequestLike, identity: Identity) -> bool:
    """listFor() scoping applied to a single request."""
    if identity.role == UserRole.STUDENT:
        return request.student_id == identity.id
    return (
        request.status == RequestStatus.OPEN.value
        or request.writer_id == identity.id
    )


def can_read_file(request: RequestLike, identity: Identity, attachment: bool) -> bool:
    """Chat attachments follow chat access; reference files follow request visibility."""
    if attachment:
        return is_participant(request, identity.id)
    return is_visible_to(request, identity)
