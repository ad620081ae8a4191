"""Chat Routes — list and send messages on a request's conversation.

Invariants:
    - Listing marks messages addressed to the caller as read
    - Sending takes multipart form data: optional `message` text, optional `file`
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from notehub.api.dependencies import get_chat_service, get_current_identity
from notehub.api.routes.requests import read_upload
from notehub.core.domain_types import Identity
from notehub.schemas.chat import MessageView
from notehub.services.chat import ChatService

router = APIRouter(prefix="/api/v1/requests", tags=["chat"])


@router.get("/{request_id}/messages", response_model=list[MessageView])
async def list_messages(
    request_id: int,
    identity: Identity = Depends(get_current_identity),
    chat: ChatService = Depends(get_chat_service),
):
    return await chat.list_messages(identity, request_id)


@router.post(
    "/{request_id}/messages", response_model=MessageView,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    request_id: int,
    message: str | None = Form(None),
    file: UploadFile | None = File(None),
    identity: Identity = Depends(get_current_identity),
    chat: ChatService = Depends(get_chat_service),
):
    upload = await read_upload(file) if file is not None else None
    return await chat.send(identity, request_id, message, upload)
