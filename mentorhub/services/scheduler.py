# mentorhub/services/scheduler.py
"""
Durable deferred events.

A deferred realtime event (e.g. ``meeting:start``) is stored as a
``scheduled_events`` row with a due time. A sweeper thread polls for due
rows and publishes them through the event channel, so scheduled events
survive a process restart. Each recipient is published to at most once:
recipients that failed are retried with exponential backoff until the
row is marked failed.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.config import settings
from mentorhub.crud import scheduled_event as scheduled_crud
from mentorhub.database import SessionLocal
from mentorhub.services.event_channel import EventChannel
from mentorhub.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def compute_due_at(
    requested_at: Optional[datetime],
    *,
    now: Optional[datetime] = None,
    default_delay_minutes: Optional[int] = None,
) -> datetime:
    """Requested instant, or now + default delay; never earlier than now."""
    now = now or utcnow()
    if requested_at is None:
        delay = (
            settings.MEETING_DEFAULT_DELAY_MINUTES
            if default_delay_minutes is None
            else default_delay_minutes
        )
        return now + timedelta(minutes=max(0, delay))
    return max(requested_at, now)


def schedule_event(
    db: Session,
    *,
    event_type: str,
    recipients: List[int],
    payload: Dict[str, Any],
    due_at: datetime,
) -> models.ScheduledEvent:
    """Stage a deferred event; the caller commits."""
    event = scheduled_crud.enqueue(
        db,
        event_type=event_type,
        recipients=recipients,
        payload=payload,
        due_at=due_at,
    )
    logger.info(
        "Scheduled %s for %s (recipients=%s, event_id=%s)",
        event_type,
        due_at.isoformat(),
        recipients,
        event.id,
    )
    return event


class EventScheduler:
    """Poll-and-publish loop for ``scheduled_events``."""

    def __init__(
        self,
        events: EventChannel,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        poll_seconds: Optional[int] = None,
        batch_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff_base_seconds: Optional[int] = None,
    ):
        self.events = events
        self.session_factory = session_factory
        self.poll_seconds = max(1, poll_seconds or settings.SCHEDULER_POLL_SECONDS)
        self.batch_size = max(1, batch_size or settings.SCHEDULER_BATCH_SIZE)
        self.max_attempts = max(1, max_attempts or settings.SCHEDULER_MAX_ATTEMPTS)
        self.backoff_base_seconds = (
            settings.SCHEDULER_BACKOFF_BASE_SECONDS
            if backoff_base_seconds is None
            else backoff_base_seconds
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _publish(self, event: models.ScheduledEvent) -> List[str]:
        """Publish to every recipient not reached yet; returns the failures."""
        reached = [int(uid) for uid in event.delivered_to or []]
        errors = []
        for recipient_id in event.recipients or []:
            recipient_id = int(recipient_id)
            if recipient_id in reached:
                continue
            try:
                self.events.publish(recipient_id, event.event_type, dict(event.payload or {}))
            except Exception as exc:
                logger.warning(
                    "Deferred event %s (id=%s) failed for user_id=%s: %s",
                    event.event_type,
                    event.id,
                    recipient_id,
                    exc,
                )
                errors.append(f"user_id={recipient_id}: {exc}")
            else:
                reached.append(recipient_id)
        event.delivered_to = reached
        return errors

    def run_due(self, now: Optional[datetime] = None) -> int:
        """Publish every due event once; returns how many were delivered."""
        now = now or utcnow()
        delivered = 0
        db = self.session_factory()
        try:
            due = scheduled_crud.fetch_due(db, now=now, limit=self.batch_size)
            for event in due:
                errors = self._publish(event)
                if errors:
                    # only the recipients that failed are retried
                    scheduled_crud.mark_failed(
                        db,
                        event,
                        error="; ".join(errors),
                        now=now,
                        max_attempts=self.max_attempts,
                        backoff_base_seconds=self.backoff_base_seconds,
                    )
                else:
                    scheduled_crud.mark_delivered(db, event)
                    delivered += 1
                db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Scheduled event sweep failed: %s", exc)
        finally:
            db.close()
        if delivered:
            logger.info("Delivered %d scheduled event(s)", delivered)
        return delivered

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_due()
            except Exception:
                # keep the worker alive; the next poll retries
                logger.exception("Unexpected error in event scheduler loop")
            self._stop_event.wait(self.poll_seconds)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="event-scheduler", daemon=True)
        self._thread.start()
        logger.info("Event scheduler started (poll=%ss)", self.poll_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Event scheduler stopped")
