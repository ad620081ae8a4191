"""Event Stream — WebSocket endpoint for real-time lifecycle and chat notifications.

Invariants:
    - The connection is authenticated before accept(): bad or missing token → close 1008
    - Every connection receives pool events (request_accepted, status_updated) from connect
    - request:<id> topics are joined explicitly and only by that request's participants
    - Exactly one task writes to the socket (the pump); replies go through the same queue
    - disconnect() always runs, whatever ends the connection
    - The pump task is awaited after cancel, so a send failure is collected, never left pending

Design Decisions:
    - Client frames: {"action": "join" | "leave", "request_id": int}
    - Join authorization opens a short-lived session per frame (not one per connection),
      so idle sockets never hold a pooled DB connection
    - Malformed frames get an error frame back; the connection stays open
"""

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from notehub.core.domain_types import Identity
from notehub.core.errors import AuthError, NoteHubError, ValidationError
from notehub.core.events import channel_ack, request_topic
from notehub.infrastructure.auth_provider import JWTTokenProvider, get_token_provider
from notehub.infrastructure.database import get_session_scope
from notehub.infrastructure.notification_hub import (
    NotificationHub, Subscriber, get_notification_hub,
)
from notehub.services.chat import ChatService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["events"])

_ACTIONS = ("join", "leave")


@router.websocket("/events")
async def event_stream(
    websocket: WebSocket,
    token: str | None = None,
    tokens: JWTTokenProvider = Depends(get_token_provider),
    hub: NotificationHub = Depends(get_notification_hub),
    session_scope=Depends(get_session_scope),
):
    try:
        identity = tokens.verify(token or "")
    except AuthError as e:
        logger.warning(f"Rejected event stream: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscriber = hub.connect(identity)
    pump = asyncio.create_task(_pump(websocket, subscriber))
    logger.info(
        "Event stream opened",
        extra={"connection_id": subscriber.id, "user_id": identity.id},
    )
    try:
        while True:
            raw = await websocket.receive_text()
            reply = await _handle_frame(raw, identity, subscriber, hub, session_scope)
            subscriber.deliver(reply)
    except WebSocketDisconnect:
        pass
    finally:
        await _stop_pump(pump)
        hub.disconnect(subscriber)
        logger.info(
            "Event stream closed",
            extra={"connection_id": subscriber.id, "user_id": identity.id},
        )


async def _pump(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Drain the subscriber queue onto the socket."""
    while True:
        event = await subscriber.queue.get()
        await websocket.send_json(event)


async def _stop_pump(pump: asyncio.Task) -> None:
    """Cancel the pump and collect its outcome, including a failed send."""
    pump.cancel()
    with contextlib.suppress(asyncio.CancelledError, Exception):
        await pump


async def _handle_frame(
    raw: str,
    identity: Identity,
    subscriber: Subscriber,
    hub: NotificationHub,
    session_scope,
) -> dict:
    try:
        action, request_id = _parse_frame(raw)
        if action == "leave":
            hub.leave(subscriber, request_topic(request_id))
            return channel_ack(action, request_id)

        async with session_scope() as db:
            await ChatService(db).authorize_join(identity, request_id)
        hub.join(subscriber, request_topic(request_id))
        return channel_ack(action, request_id)
    except NoteHubError as e:
        return e.to_event()


def _parse_frame(raw: str) -> tuple[str, int]:
    try:
        frame = json.loads(raw)
    except ValueError:
        raise ValidationError("Frame must be JSON") from None
    if not isinstance(frame, dict):
        raise ValidationError("Frame must be a JSON object")

    action = frame.get("action")
    request_id = frame.get("request_id")
    if action not in _ACTIONS:
        raise ValidationError("action must be 'join' or 'leave'", field="action")
    if not isinstance(request_id, int) or isinstance(request_id, bool):
        raise ValidationError("request_id must be an integer", field="request_id")
    return action, request_id
