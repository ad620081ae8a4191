"""Notification Hub — in-process fan-out of lifecycle and chat events to live connections.

Invariants:
    - Every connection is subscribed to the pool topic from connect() until disconnect()
    - Request topics are opt-in (join/leave)
    - publish() delivers an event at most once per connection, however many of its topics match
    - publish() never blocks and never raises: a full queue drops the event with a warning
    - Nothing is persisted — a reconnecting client re-fetches state through the list endpoints

Design Decisions:
    - One bounded asyncio.Queue per connection: the WebSocket writer task drains it, so a
      slow client only ever loses its own events
    - No locks: all mutation happens on the event loop thread (single-process uvicorn)
    - Callers publish only after their DB commit succeeded
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable

from notehub.core.domain_types import Identity
from notehub.core.events import POOL_TOPIC

logger = logging.getLogger(__name__)


class Subscriber:
    """A live connection's mailbox and topic memberships."""

    def __init__(self, identity: Identity, queue_size: int):
        self.id = uuid.uuid4().hex[:12]
        self.identity = identity
        self.queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=queue_size)
        self.topics: set[str] = set()

    def deliver(self, event: dict) -> bool:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Dropping {event.get('type')} for slow connection",
                extra={"connection_id": self.id, "user_id": self.identity.id},
            )
            return False
        return True


class NotificationHub:
    """Topic registry plus best-effort delivery."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: dict[str, Subscriber] = {}
        self._topics: dict[str, set[str]] = defaultdict(set)

    @property
    def connection_count(self) -> int:
        return len(self._subscribers)

    def connect(self, identity: Identity) -> Subscriber:
        subscriber = Subscriber(identity, self._queue_size)
        self._subscribers[subscriber.id] = subscriber
        self.join(subscriber, POOL_TOPIC)
        logger.info(
            "Connection opened",
            extra={"connection_id": subscriber.id, "user_id": identity.id},
        )
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        for topic in list(subscriber.topics):
            self.leave(subscriber, topic)
        self._subscribers.pop(subscriber.id, None)
        logger.info(
            "Connection closed",
            extra={"connection_id": subscriber.id, "user_id": subscriber.identity.id},
        )

    def join(self, subscriber: Subscriber, topic: str) -> None:
        self._topics[topic].add(subscriber.id)
        subscriber.topics.add(topic)

    def leave(self, subscriber: Subscriber, topic: str) -> None:
        members = self._topics.get(topic)
        if members is not None:
            members.discard(subscriber.id)
            if not members:
                del self._topics[topic]
        subscriber.topics.discard(topic)

    def members(self, topic: str) -> set[str]:
        return set(self._topics.get(topic, ()))

    def publish(self, event: dict, topics: Iterable[str]) -> int:
        """Fan an event out to the union of the topics' members; returns deliveries."""
        topic_list = list(topics)
        recipients: set[str] = set()
        for topic in topic_list:
            recipients |= self._topics.get(topic, set())

        delivered = 0
        for subscriber_id in recipients:
            subscriber = self._subscribers.get(subscriber_id)
            if subscriber and subscriber.deliver(event):
                delivered += 1
        logger.debug(
            "Event published",
            extra={
                "event_type": event.get("type"),
                "topic": ",".join(topic_list),
                "recipients": delivered,
            },
        )
        return delivered


# Singleton (initialized on startup)
notification_hub: NotificationHub | None = None


def init_notification_hub(queue_size: int = 100) -> NotificationHub:
    global notification_hub
    notification_hub = NotificationHub(queue_size)
    return notification_hub


def get_notification_hub() -> NotificationHub:
    """FastAPI dependency for the notification hub."""
    if not notification_hub:
        raise RuntimeError("Notification hub not initialized")
    return notification_hub
