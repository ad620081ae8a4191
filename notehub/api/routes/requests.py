"""Request Routes — create, list, accept, move and rate note requests.

Invariants:
    - Every endpoint requires a bearer identity
    - Routes only translate HTTP ↔ service calls; rules live in core/, sequencing in services/
    - Deadline lead time is checked here (deployment policy from settings), before any IO

Design Decisions:
    - Creation is multipart: form fields are gathered into RequestCreate by a dependency
      (schema errors re-raised as RequestValidationError, so they share the 400 envelope);
      reference files arrive as repeated `reference_files` parts
    - Rating lives under the request it rates: POST /requests/{id}/rating
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as SchemaValidationError

from notehub.api.dependencies import (
    get_current_identity, get_lifecycle_service, get_reputation_service,
)
from notehub.config import get_settings
from notehub.core.domain_types import Identity
from notehub.core.lifecycle_rules import check_deadline_lead
from notehub.core.repository_protocols import BlobMetadata, Upload
from notehub.schemas.rating import RatingCreate, RatingResult
from notehub.schemas.request import RequestCreate, RequestCreated, RequestView, StatusUpdate
from notehub.services.reputation import ReputationService
from notehub.services.request_lifecycle import RequestLifecycleService, request_view

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/requests", tags=["requests"])


async def read_upload(file: UploadFile) -> Upload:
    """Buffer a multipart part into an Upload (shared with chat attachments)."""
    return Upload(
        data=await file.read(),
        metadata=BlobMetadata(
            filename=file.filename or "upload",
            media_type=file.content_type,
        ),
    )


def request_form(
    subject: str = Form(...),
    topic: str = Form(...),
    note_type: str = Form(...),
    pages: str = Form(...),
    deadline: str = Form(...),
    delivery_location: str = Form(...),
    language: str = Form("English"),
    amount: str = Form("0.00"),
    payment_type: str = Form("free"),
    special_instructions: str | None = Form(None),
) -> RequestCreate:
    try:
        return RequestCreate(
            subject=subject, topic=topic, note_type=note_type, pages=pages,
            deadline=deadline, delivery_location=delivery_location,
            language=language, amount=amount, payment_type=payment_type,
            special_instructions=special_instructions,
        )
    except SchemaValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from None


@router.post(
    "", response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    fields: RequestCreate = Depends(request_form),
    reference_files: list[UploadFile] | None = File(None),
    identity: Identity = Depends(get_current_identity),
    lifecycle: RequestLifecycleService = Depends(get_lifecycle_service),
):
    check_deadline_lead(
        fields.deadline,
        datetime.now(timezone.utc),
        get_settings().min_deadline_lead_minutes,
    )
    uploads = [await read_upload(f) for f in reference_files or []]
    request = await lifecycle.create(identity, fields, uploads)
    return RequestCreated(id=request.id)


@router.get("", response_model=list[RequestView])
async def list_requests(
    identity: Identity = Depends(get_current_identity),
    lifecycle: RequestLifecycleService = Depends(get_lifecycle_service),
):
    """Students see their own requests; writers see the open pool plus their claims."""
    return await lifecycle.list_for(identity)


@router.get("/{request_id}", response_model=RequestView)
async def get_request(
    request_id: int,
    identity: Identity = Depends(get_current_identity),
    lifecycle: RequestLifecycleService = Depends(get_lifecycle_service),
):
    return await lifecycle.get(identity, request_id)


@router.post("/{request_id}/accept")
async def accept_request(
    request_id: int,
    identity: Identity = Depends(get_current_identity),
    lifecycle: RequestLifecycleService = Depends(get_lifecycle_service),
):
    request = await lifecycle.accept(identity, request_id)
    return {
        "message": "Request accepted successfully",
        "request": RequestView.model_validate(request_view(request)),
    }


@router.post("/{request_id}/status")
async def update_status(
    request_id: int,
    body: StatusUpdate,
    identity: Identity = Depends(get_current_identity),
    lifecycle: RequestLifecycleService = Depends(get_lifecycle_service),
):
    request = await lifecycle.transition(identity, request_id, body.status)
    return {
        "message": "Status updated successfully",
        "request": RequestView.model_validate(request_view(request)),
    }


@router.post(
    "/{request_id}/rating", response_model=RatingResult,
    status_code=status.HTTP_201_CREATED,
)
async def rate_request(
    request_id: int,
    body: RatingCreate,
    identity: Identity = Depends(get_current_identity),
    reputation: ReputationService = Depends(get_reputation_service),
):
    return await reputation.rate(identity, request_id, body.score, body.review)
