"""Chat Schemas — message view returned by list/send and pushed as new_message."""

from datetime import datetime

from pydantic import BaseModel

from notehub.core.domain_types import MessageType


class MessageView(BaseModel):
    id: int
    request_id: int
    sender_id: int
    receiver_id: int
    sender_name: str
    message: str
    message_type: MessageType
    file_path: str | None
    timestamp: datetime
    is_read: bool
