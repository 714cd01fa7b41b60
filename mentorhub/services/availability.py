# mentorhub/services/availability.py
"""
Availability & conflict checking over a person's session timeline.

Only upcoming and in-progress sessions occupy time. Intervals are
half-open, so a session ending at 10:00 does not collide with one
starting at 10:00. Every check reads the store; nothing is cached.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.crud import request as request_crud
from mentorhub.crud import session as session_crud
from mentorhub.exceptions import PersistenceFailureError

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    return a_start < b_end and b_start < a_end


def find_conflicts(
    db: Session,
    person_id: int,
    interval_start: datetime,
    duration_minutes: int,
    exclude_session_id: Optional[int] = None,
    *,
    first_only: bool = False,
) -> List[models.MentoringSession]:
    """Active sessions of ``person_id`` overlapping ``[start, start + duration)``."""
    interval_end = interval_start + timedelta(minutes=duration_minutes)
    try:
        candidates = session_crud.get_active_sessions_for_person(
            db,
            person_id,
            starting_before=interval_end,
            exclude_session_id=exclude_session_id,
        )
    except SQLAlchemyError as exc:
        logger.error("Conflict lookup failed for person_id=%s: %s", person_id, exc)
        raise PersistenceFailureError(
            "Could not read the session timeline",
            details={"person_id": person_id},
        ) from exc

    conflicts = []
    for existing in candidates:
        if intervals_overlap(interval_start, interval_end, existing.scheduled_at, existing.ends_at):
            conflicts.append(existing)
            if first_only:
                break

    if conflicts:
        logger.info(
            "Found %d conflicting session(s) for person_id=%s between %s and %s",
            len(conflicts),
            person_id,
            interval_start,
            interval_end,
        )
    return conflicts


def has_conflict(
    db: Session,
    person_id: int,
    interval_start: datetime,
    duration_minutes: int,
    exclude_session_id: Optional[int] = None,
) -> bool:
    return bool(
        find_conflicts(
            db,
            person_id,
            interval_start,
            duration_minutes,
            exclude_session_id,
            first_only=True,
        )
    )


def check_availability(
    db: Session,
    person_id: int,
    interval_start: datetime,
    duration_minutes: int = 60,
    exclude_session_id: Optional[int] = None,
) -> dict:
    conflicts = find_conflicts(db, person_id, interval_start, duration_minutes, exclude_session_id)
    return {"available": not conflicts, "conflicts": len(conflicts)}


def can_view_timeline(db: Session, viewer_id: int, person_id: int) -> bool:
    """A person's timeline is visible to themselves and their active mentoring partners."""
    if viewer_id == person_id:
        return True
    return request_crud.has_active_relationship(
        db, person_id, viewer_id
    ) or request_crud.has_active_relationship(db, viewer_id, person_id)
