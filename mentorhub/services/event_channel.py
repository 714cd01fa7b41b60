# mentorhub/services/event_channel.py
"""
Realtime fan-out for the mentoring core.

Clients subscribe to a ``user:<id>`` channel and, optionally, a
``role:<role>`` channel. Publishing never blocks the caller: each
subscriber owns a bounded asyncio queue and events are handed to its loop
with ``call_soon_threadsafe``. A full queue drops the event. Delivery is
at-most-once and nothing is persisted here.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Optional, Set

from mentorhub.config import settings
from mentorhub.schemas.realtime import RealtimeEvent

logger = logging.getLogger(__name__)


def user_channel(user_id: int) -> str:
    return f"user:{user_id}"


def role_channel(role: str) -> str:
    return f"role:{role}"


class Subscription:
    """One connected client. ``loop`` is None for subscribers polled synchronously."""

    def __init__(
        self,
        user_id: int,
        role: Optional[str] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        maxsize: int = 100,
    ):
        self.user_id = user_id
        self.role = role
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    @property
    def channels(self):
        names = [user_channel(self.user_id)]
        if self.role:
            names.append(role_channel(self.role))
        return names

    def deliver(self, event: RealtimeEvent) -> None:
        if self.loop is None:
            self._put(event)
        else:
            self.loop.call_soon_threadsafe(self._put, event)

    def _put(self, event: RealtimeEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Realtime queue full, dropping %s for user_id=%s",
                event.type,
                self.user_id,
            )

    async def get(self) -> RealtimeEvent:
        return await self.queue.get()

    def drain(self):
        """Return every queued event without waiting."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events


class EventChannel:
    """Per-recipient publish/subscribe hub."""

    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or settings.REALTIME_QUEUE_SIZE
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)

    def subscribe(
        self,
        user_id: int,
        role: Optional[str] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> Subscription:
        subscription = Subscription(user_id, role, loop=loop, maxsize=self.queue_size)
        with self._lock:
            for name in subscription.channels:
                self._subscribers[name].add(subscription)
        logger.debug("Subscribed user_id=%s to %s", user_id, subscription.channels)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            for name in subscription.channels:
                members = self._subscribers.get(name)
                if not members:
                    continue
                members.discard(subscription)
                if not members:
                    del self._subscribers[name]

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    def _fan_out(self, channel: str, event_type: str, payload: Dict[str, Any]) -> int:
        event = RealtimeEvent(type=event_type, payload=payload)
        with self._lock:
            targets = list(self._subscribers.get(channel, ()))
        delivered = 0
        for subscription in targets:
            try:
                subscription.deliver(event)
            except RuntimeError as exc:
                # subscriber's loop is closed; the connection is gone
                logger.warning(
                    "Dropping stale subscription for user_id=%s on %s: %s",
                    subscription.user_id,
                    channel,
                    exc,
                )
                self.unsubscribe(subscription)
                continue
            delivered += 1
        logger.debug("Published %s to %s (%d subscribers)", event_type, channel, delivered)
        return delivered

    def publish(self, user_id: int, event_type: str, payload: Dict[str, Any]) -> int:
        """Push an event to every connection of ``user_id``; returns how many connections received it."""
        return self._fan_out(user_channel(user_id), event_type, payload)

    def publish_to_role(self, role: str, event_type: str, payload: Dict[str, Any]) -> int:
        return self._fan_out(role_channel(role), event_type, payload)


# Process-wide hub served by the WebSocket endpoint. Managers receive it
# through dependency injection rather than importing it.
event_channel = EventChannel()


def get_event_channel() -> EventChannel:
    return event_channel
