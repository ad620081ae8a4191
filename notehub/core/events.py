"""Event Builders — real-time channel payloads and topic routing.

Invariants:
    - Every event is {"type": EventType.value, "data": {...}} (JSON-serializable)
    - request_accepted / status_updated route to the pool topic AND the request topic
    - new_message routes to the request topic only
    - All functions are pure transforms — no DB, no async, no side effects

Design Decisions:
    - Pool topic instead of a raw broadcast: every connection joins it on connect,
      so lifecycle events still reach all clients while chat stays request-scoped
"""

from datetime import datetime

from notehub.core.domain_types import EventType

POOL_TOPIC = "pool"


def request_topic(request_id: int) -> str:
    return f"request:{request_id}"


def _iso(moment: datetime | None) -> str | None:
    return moment.isoformat() if moment else None


def request_accepted_event(
    request_id: int, student_id: int, writer_id: int, writer_name: str,
) -> dict:
    return {
        "type": EventType.REQUEST_ACCEPTED.value,
        "data": {
            "request_id": request_id,
            "student_id": student_id,
            "writer_id": writer_id,
            "writer_name": writer_name,
        },
    }


def status_updated_event(request_id: int, status: str, updated_by: int) -> dict:
    return {
        "type": EventType.STATUS_UPDATED.value,
        "data": {
            "request_id": request_id,
            "status": status,
            "updated_by": updated_by,
        },
    }


def new_message_event(message: dict) -> dict:
    """Wrap an already-serialized message (see serialize_message)."""
    return {"type": EventType.NEW_MESSAGE.value, "data": message}


def lifecycle_topics(request_id: int) -> list[str]:
    return [POOL_TOPIC, request_topic(request_id)]


def serialize_message(message, sender_name: str) -> dict:
    """Full message shape shared by the chat list, send response and event."""
    return {
        "id": message.id,
        "request_id": message.request_id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "sender_name": sender_name,
        "message": message.message,
        "message_type": message.message_type,
        "file_path": message.file_path,
        "timestamp": _iso(message.timestamp),
        "is_read": message.is_read,
    }


def channel_ack(action: str, request_id: int) -> dict:
    """Control frame confirming a join/leave ("joined" / "left")."""
    return {
        "type": "joined" if action == "join" else "left",
        "data": {"request_id": request_id, "topic": request_topic(request_id)},
    }
