from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.models.scheduled_event import ScheduledEventStatus


def enqueue(
    db: Session,
    *,
    event_type: str,
    recipients: List[int],
    payload: Dict[str, Any],
    due_at: datetime,
) -> models.ScheduledEvent:
    event = models.ScheduledEvent(
        event_type=event_type,
        recipients=list(recipients),
        delivered_to=[],
        payload=payload,
        due_at=due_at,
        status=ScheduledEventStatus.QUEUED,
        attempts=0,
    )
    db.add(event)
    db.flush()
    return event


def fetch_due(db: Session, *, now: datetime, limit: int = 50) -> List[models.ScheduledEvent]:
    return (
        db.query(models.ScheduledEvent)
        .filter(
            models.ScheduledEvent.status == ScheduledEventStatus.QUEUED,
            models.ScheduledEvent.due_at <= now,
        )
        .order_by(models.ScheduledEvent.due_at.asc(), models.ScheduledEvent.id.asc())
        .limit(limit)
        .all()
    )


def mark_delivered(db: Session, event: models.ScheduledEvent) -> None:
    event.status = ScheduledEventStatus.DELIVERED
    event.attempts = (event.attempts or 0) + 1
    db.flush()


def mark_failed(
    db: Session,
    event: models.ScheduledEvent,
    *,
    error: str,
    now: datetime,
    max_attempts: int,
    backoff_base_seconds: int,
) -> None:
    """Record a failed attempt; requeue with exponential backoff until attempts run out."""
    attempts = (event.attempts or 0) + 1
    event.attempts = attempts
    event.last_error = error[:1000]
    if attempts >= max_attempts:
        event.status = ScheduledEventStatus.FAILED
    else:
        event.status = ScheduledEventStatus.QUEUED
        event.due_at = now + timedelta(seconds=backoff_base_seconds * (2 ** (attempts - 1)))
    db.flush()
