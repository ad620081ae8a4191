"""Request Lifecycle Service — create, accept, transition and role-scoped listing of requests.

Invariants:
    - accept() is one compare-and-set on (status = open AND writer_id IS NULL): exactly one
      of N concurrent writers wins, the others get ConflictError
    - transition() is one conditional UPDATE scoped to the stored student/writer ids
    - Events are published only after commit() returned
    - Reference files are written to the blob store only after validation passed

Design Decisions:
    - Rules live in core/lifecycle_rules.py; this class only sequences IO around them
    - After a failed conditional UPDATE the row is re-read solely to choose the error kind
    - Accept re-reads the caller's role from the users row (token role is advisory)
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notehub.core.domain_types import Identity, RequestStatus, UserRole
from notehub.core.errors import ResourceNotFoundError, ValidationError
from notehub.core.events import (
    lifecycle_topics, request_accepted_event, status_updated_event,
)
from notehub.core.lifecycle_rules import (
    check_can_accept, check_can_create, diagnose_failed_accept,
    diagnose_failed_transition, is_visible_to, parse_target_status,
    transition_sources, validate_new_request,
)
from notehub.core.repository_protocols import BlobStore, Upload
from notehub.db.atomic import compare_and_set
from notehub.infrastructure.notification_hub import NotificationHub
from notehub.models.note_request import NoteRequest
from notehub.models.user import User
from notehub.schemas.request import RequestCreate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def request_view(request: NoteRequest) -> dict:
    """Flatten a request plus its counterpart contact fields."""
    student = request.student
    writer = request.writer
    return {
        "id": request.id,
        "student_id": request.student_id,
        "writer_id": request.writer_id,
        "subject": request.subject,
        "topic": request.topic,
        "note_type": request.note_type,
        "pages": request.pages,
        "deadline": request.deadline,
        "language": request.language,
        "delivery_location": request.delivery_location,
        "amount": request.amount,
        "payment_type": request.payment_type,
        "status": request.status,
        "reference_files": list(request.reference_files or []),
        "special_instructions": request.special_instructions,
        "created_at": request.created_at,
        "updated_at": request.updated_at,
        "student_name": student.username if student else None,
        "student_phone": student.phone if student else None,
        "writer_name": writer.username if writer else None,
        "writer_phone": writer.phone if writer else None,
    }


class RequestLifecycleService:
    """Owns the request state machine and its authorization checks."""

    def __init__(
        self,
        db: AsyncSession,
        hub: NotificationHub | None = None,
        blob_store: BlobStore | None = None,
        strict_transitions: bool = False,
        max_reference_files: int = 5,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.hub = hub
        self.blob_store = blob_store
        self.strict_transitions = strict_transitions
        self.max_reference_files = max_reference_files
        self._now = clock

    async def create(
        self,
        identity: Identity,
        fields: RequestCreate,
        uploads: list[Upload] | None = None,
    ) -> NoteRequest:
        """Persist a new open request owned by the calling student."""
        check_can_create(identity)
        now = self._now()
        validate_new_request(
            pages=fields.pages,
            deadline=fields.deadline,
            note_type=fields.note_type.value,
            payment_type=fields.payment_type.value,
            amount=fields.amount,
            now=now,
        )
        uploads = uploads or []
        if len(uploads) > self.max_reference_files:
            raise ValidationError(
                f"At most {self.max_reference_files} reference files allowed",
                field="reference_files",
            )

        references = []
        for upload in uploads:
            if self.blob_store is None:
                raise RuntimeError("Blob store not configured")
            references.append(
                await self.blob_store.store(upload.data, upload.metadata),
            )

        request = NoteRequest(
            student_id=identity.id,
            writer_id=None,
            subject=fields.subject,
            topic=fields.topic,
            note_type=fields.note_type.value,
            pages=fields.pages,
            deadline=fields.deadline,
            language=fields.language,
            delivery_location=fields.delivery_location,
            amount=fields.amount,
            payment_type=fields.payment_type.value,
            status=RequestStatus.OPEN.value,
            reference_files=references,
            special_instructions=fields.special_instructions,
            created_at=now,
            updated_at=now,
        )
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info(
            "Request created",
            extra={"request_id": request.id, "user_id": identity.id},
        )
        return request

    async def accept(self, identity: Identity, request_id: int) -> NoteRequest:
        """Claim an open request for the calling writer (compare-and-set)."""
        writer = await self.db.get(User, identity.id)
        check_can_accept(writer.role if writer else None)

        won = await compare_and_set(
            self.db,
            NoteRequest,
            [
                NoteRequest.id == request_id,
                NoteRequest.status == RequestStatus.OPEN.value,
                NoteRequest.writer_id.is_(None),
            ],
            {
                "writer_id": writer.id,
                "status": RequestStatus.ACCEPTED.value,
                "updated_at": self._now(),
            },
        )
        if not won:
            await self.db.rollback()
            raise diagnose_failed_accept(await self._load(request_id), request_id)
        await self.db.commit()

        request = await self._load(request_id)
        logger.info(
            "Request accepted",
            extra={"request_id": request_id, "user_id": writer.id},
        )
        self._publish(
            request_accepted_event(
                request.id, request.student_id, writer.id, writer.username,
            ),
            lifecycle_topics(request.id),
        )
        return request

    async def transition(
        self, identity: Identity, request_id: int, target_status: str,
    ) -> NoteRequest:
        """Move a request to target_status on behalf of its student or writer."""
        target = parse_target_status(target_status)
        sources = transition_sources(target, self.strict_transitions)
        predicates = [
            NoteRequest.id == request_id,
            or_(
                NoteRequest.writer_id == identity.id,
                NoteRequest.student_id == identity.id,
            ),
            NoteRequest.status.in_([s.value for s in sources]),
        ]
        if target != RequestStatus.CANCELLED:
            predicates.append(NoteRequest.writer_id.is_not(None))

        changed = await compare_and_set(
            self.db, NoteRequest, predicates,
            {"status": target.value, "updated_at": self._now()},
        )
        if not changed:
            await self.db.rollback()
            raise diagnose_failed_transition(
                await self._load(request_id), identity.id, request_id,
                target, self.strict_transitions,
            )
        await self.db.commit()

        request = await self._load(request_id)
        logger.info(
            f"Request moved to {target.value}",
            extra={"request_id": request_id, "user_id": identity.id},
        )
        self._publish(
            status_updated_event(request_id, target.value, identity.id),
            lifecycle_topics(request_id),
        )
        return request

    async def list_for(self, identity: Identity) -> list[dict]:
        """Students: own requests. Writers: the open pool plus own claims."""
        query = select(NoteRequest)
        if identity.role == UserRole.STUDENT:
            query = query.where(NoteRequest.student_id == identity.id)
        else:
            query = query.where(or_(
                NoteRequest.status == RequestStatus.OPEN.value,
                NoteRequest.writer_id == identity.id,
            ))
        query = query.order_by(
            NoteRequest.created_at.desc(), NoteRequest.id.desc(),
        )
        result = await self.db.execute(query)
        return [request_view(r) for r in result.scalars().all()]

    async def get(self, identity: Identity, request_id: int) -> dict:
        request = await self._load(request_id)
        if request is None or not is_visible_to(request, identity):
            raise ResourceNotFoundError("Request", str(request_id))
        return request_view(request)

    async def _load(self, request_id: int) -> NoteRequest | None:
        result = await self.db.execute(
            select(NoteRequest)
            .where(NoteRequest.id == request_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    def _publish(self, event: dict, topics: list[str]) -> None:
        if self.hub is not None:
            self.hub.publish(event, topics)
