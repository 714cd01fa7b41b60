# mentorhub/services/session_service.py
"""
Mentoring session lifecycle.

    upcoming -> in_progress -> completed
    upcoming | in_progress -> cancelled

Every mutation re-reads the session and checks, in order, existence
(NotFoundError), participation (AccessDeniedError) and state
(InvalidStateError) before writing. The write itself is a conditional
update on the expected status. Bookings lock both participants' user rows
before the conflict read so two overlapping bookings for the same person
cannot both commit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.config import settings
from mentorhub.crud import request as request_crud
from mentorhub.crud import session as session_crud
from mentorhub.crud import user as user_crud
from mentorhub.exceptions import (
    AccessDeniedError,
    InvalidStateError,
    NotFoundError,
    RelationshipRequiredError,
    SchedulingConflictError,
)
from mentorhub.models.session import SESSION_TRANSITIONS, PaymentStatus, SessionStatus
from mentorhub.models.user import UserRole
from mentorhub.schemas.realtime import EventType
from mentorhub.schemas.session import SessionCreate, SessionUpdate
from mentorhub.services import availability
from mentorhub.services.base import BaseService
from mentorhub.services.event_channel import EventChannel
from mentorhub.utils.timeutils import isoformat_utc, utcnow

# status reached -> (event type, notification event type, verb)
_TRANSITION_EVENTS = {
    SessionStatus.IN_PROGRESS: (EventType.SESSION_STARTED, "session_started", "started"),
    SessionStatus.COMPLETED: (EventType.SESSION_COMPLETED, "session_completed", "completed"),
    SessionStatus.CANCELLED: (EventType.SESSION_CANCELLED, "session_cancelled", "cancelled"),
}


def compute_amount(hourly_rate: Optional[float], duration_minutes: int) -> float:
    """Price of a session; mentors without a rate bill the default."""
    rate = hourly_rate or settings.DEFAULT_HOURLY_RATE
    return round(rate * duration_minutes / 60.0, 2)


class SessionLifecycleManager(BaseService):
    """Owns MentoringSession creation and transitions."""

    def __init__(self, db: Session, events: Optional[EventChannel] = None, *, clock=utcnow):
        super().__init__(db, events)
        self.clock = clock

    # ======================
    # CREATION
    # ======================
    def book_session(
        self,
        mentee_id: int,
        mentor_id: int,
        title: str,
        start: datetime,
        duration: int = 60,
        message: Optional[str] = None,
    ) -> models.MentoringSession:
        """Mentee-initiated booking; needs an active relationship."""
        with self.transaction():
            self._lock_participants(mentor_id, mentee_id)
            mentor = user_crud.get_user_with_role(self.db, mentor_id, UserRole.MENTOR)
            if mentor is None:
                raise NotFoundError("Mentor not found", details={"mentor_id": mentor_id})
            if not request_crud.has_active_relationship(self.db, mentor_id, mentee_id):
                raise RelationshipRequiredError(
                    "You need an active mentoring relationship to book sessions",
                    details={"mentor_id": mentor_id},
                )
            self._ensure_free((mentor_id, mentee_id), start, duration)

            session = models.MentoringSession(
                mentor_id=mentor_id,
                mentee_id=mentee_id,
                title=title,
                message=message,
                scheduled_at=start,
                duration=duration,
                amount=compute_amount(mentor.hourly_rate, duration),
                status=SessionStatus.UPCOMING,
                payment_status=PaymentStatus.PENDING,
            )
            self.db.add(session)
            self.db.flush()

        self.db.refresh(session)
        self.logger.info(
            "Session %s booked (mentor_id=%s, mentee_id=%s, at=%s)",
            session.id,
            mentor_id,
            mentee_id,
            start,
        )
        self._announce(
            session,
            actor_id=mentee_id,
            event_type=EventType.SESSION_BOOKED,
            notification_type="session_booked",
            title="New session booked",
            message=f"A session '{session.title}' was booked for {isoformat_utc(start)}.",
        )
        return session

    def create_session(self, mentor_id: int, data: SessionCreate) -> models.MentoringSession:
        """Mentor-initiated session; no relationship check."""
        if data.mentee_id == mentor_id:
            raise InvalidStateError(
                "A session needs two different participants",
                details={"mentee_id": data.mentee_id},
            )
        with self.transaction():
            users = self._lock_participants(mentor_id, data.mentee_id)
            mentor = next((u for u in users if u.id == mentor_id), None)
            mentee = user_crud.get_user_with_role(self.db, data.mentee_id, UserRole.MENTEE)
            if mentee is None:
                raise NotFoundError("Mentee not found", details={"mentee_id": data.mentee_id})
            self._ensure_free((mentor_id, data.mentee_id), data.scheduled_at, data.duration)

            session = models.MentoringSession(
                mentor_id=mentor_id,
                mentee_id=data.mentee_id,
                title=data.title,
                description=data.description,
                scheduled_at=data.scheduled_at,
                duration=data.duration,
                amount=compute_amount(mentor.hourly_rate if mentor else None, data.duration),
                status=SessionStatus.UPCOMING,
                payment_status=PaymentStatus.PENDING,
                meeting_link=data.meeting_link,
            )
            self.db.add(session)
            self.db.flush()

        self.db.refresh(session)
        self.logger.info("Session %s created by mentor_id=%s", session.id, mentor_id)
        self._announce(
            session,
            actor_id=mentor_id,
            event_type=EventType.SESSION_BOOKED,
            notification_type="session_booked",
            title="New session scheduled",
            message=f"Your mentor scheduled '{session.title}' for {isoformat_utc(data.scheduled_at)}.",
        )
        return session

    # ======================
    # TRANSITIONS
    # ======================
    def start_session(self, session_id: int, actor_id: int) -> models.MentoringSession:
        now = self.clock()
        return self._transition(
            session_id,
            actor_id,
            target=SessionStatus.IN_PROGRESS,
            values={"actual_start_time": now},
        )

    def end_session(
        self,
        session_id: int,
        actor_id: int,
        notes: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> models.MentoringSession:
        values: Dict[str, Any] = {"actual_end_time": self.clock()}
        if notes is not None:
            values["notes"] = notes
        if summary is not None:
            values["summary"] = summary
        return self._transition(
            session_id, actor_id, target=SessionStatus.COMPLETED, values=values
        )

    def cancel_session(
        self, session_id: int, actor_id: int, reason: Optional[str] = None
    ) -> models.MentoringSession:
        return self._transition(
            session_id,
            actor_id,
            target=SessionStatus.CANCELLED,
            values={"cancellation_reason": reason},
            extra={"reason": reason},
        )

    def reschedule_session(
        self,
        session_id: int,
        actor_id: int,
        new_start: datetime,
        reason: Optional[str] = None,
    ) -> models.MentoringSession:
        with self.transaction():
            session = self._load_for(session_id, actor_id)
            if session.status != SessionStatus.UPCOMING:
                raise InvalidStateError(
                    "Only upcoming sessions can be rescheduled",
                    details={"session_id": session_id, "status": session.status},
                )
            previous_start = session.scheduled_at
            self._lock_participants(session.mentor_id, session.mentee_id)
            self._ensure_free(
                (session.mentor_id, session.mentee_id),
                new_start,
                session.duration,
                exclude_session_id=session_id,
            )
            self._conditional_update(
                session_id,
                (SessionStatus.UPCOMING,),
                {
                    "scheduled_at": new_start,
                    "reschedule_reason": reason,
                    "updated_at": self.clock(),
                },
            )

        self.db.refresh(session)
        self.logger.info(
            "Session %s rescheduled from %s to %s", session_id, previous_start, new_start
        )
        self._announce(
            session,
            actor_id=actor_id,
            event_type=EventType.SESSION_RESCHEDULED,
            notification_type="session_rescheduled",
            title="Session rescheduled",
            message=f"'{session.title}' moved to {isoformat_utc(new_start)}.",
            extra={
                "previousScheduledAt": isoformat_utc(previous_start),
                "reason": reason,
            },
        )
        return session

    def update_session(
        self, session_id: int, actor_id: int, update: SessionUpdate
    ) -> models.MentoringSession:
        """Apply the set fields of ``update``; status changes follow the transition table."""
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        now = self.clock()

        with self.transaction():
            session = self._load_for(session_id, actor_id)
            current = session.status
            values: Dict[str, Any] = {}

            target = changes.pop("status", None)
            if target is not None and target != current:
                self._require_transition(session, target)
                values["status"] = target
                if target == SessionStatus.IN_PROGRESS:
                    values["actual_start_time"] = now
                elif target == SessionStatus.COMPLETED:
                    values["actual_end_time"] = now

            if "scheduled_at" in changes or "duration" in changes:
                if current != SessionStatus.UPCOMING:
                    raise InvalidStateError(
                        "Only upcoming sessions can change time or duration",
                        details={"session_id": session_id, "status": current},
                    )
                new_start = changes.get("scheduled_at", session.scheduled_at)
                new_duration = changes.get("duration", session.duration)
                users = self._lock_participants(session.mentor_id, session.mentee_id)
                self._ensure_free(
                    (session.mentor_id, session.mentee_id),
                    new_start,
                    new_duration,
                    exclude_session_id=session_id,
                )
                mentor = next((u for u in users if u.id == session.mentor_id), None)
                values["amount"] = compute_amount(
                    mentor.hourly_rate if mentor else None, new_duration
                )

            for field in ("title", "description", "scheduled_at", "duration", "notes"):
                if field in changes:
                    values[field] = changes[field]

            if not values:
                return session

            values["updated_at"] = now
            self._conditional_update(session_id, (current,), values)

        self.db.refresh(session)
        self.logger.info("Session %s updated (%s)", session_id, ", ".join(sorted(values)))

        if "status" in values and values["status"] in _TRANSITION_EVENTS:
            event_type, notification_type, verb = _TRANSITION_EVENTS[values["status"]]
        else:
            event_type, notification_type, verb = (
                EventType.SESSION_UPDATED,
                "session_updated",
                "updated",
            )
        self._announce(
            session,
            actor_id=actor_id,
            event_type=event_type,
            notification_type=notification_type,
            title=f"Session {verb}",
            message=f"'{session.title}' was {verb}.",
        )
        return session

    # ======================
    # READS / NOTES
    # ======================
    def get_session(self, session_id: int, actor_id: int) -> models.MentoringSession:
        return self._load_for(session_id, actor_id)

    def get_session_notes(self, session_id: int, actor_id: int) -> Dict[str, Optional[str]]:
        session = self._load_for(session_id, actor_id)
        return {"notes": session.notes, "summary": session.summary}

    def update_session_notes(
        self,
        session_id: int,
        actor_id: int,
        notes: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> models.MentoringSession:
        with self.transaction():
            session = self._load_for(session_id, actor_id)
            if notes is not None:
                session.notes = notes
            if summary is not None:
                session.summary = summary
            session.updated_at = self.clock()
        self.db.refresh(session)
        return session

    # ======================
    # HELPERS
    # ======================
    def _load_for(self, session_id: int, actor_id: int) -> models.MentoringSession:
        session = session_crud.get_session(self.db, session_id)
        if session is None:
            raise NotFoundError("Session not found", details={"session_id": session_id})
        if not session.is_participant(actor_id):
            raise AccessDeniedError(
                "Not authorized to access this session",
                details={"session_id": session_id},
            )
        return session

    @staticmethod
    def _require_transition(session: models.MentoringSession, target: str) -> None:
        if target not in SESSION_TRANSITIONS.get(session.status, ()):
            raise InvalidStateError(
                f"Cannot move session from {session.status} to {target}",
                details={"session_id": session.id, "status": session.status, "target": target},
            )

    def _lock_participants(self, *user_ids: int):
        return user_crud.lock_users(self.db, user_ids)

    def _ensure_free(
        self,
        person_ids: Sequence[int],
        start: datetime,
        duration: int,
        exclude_session_id: Optional[int] = None,
    ) -> None:
        for person_id in person_ids:
            if availability.has_conflict(self.db, person_id, start, duration, exclude_session_id):
                self.logger.warning(
                    "Scheduling conflict for person_id=%s at %s (%s min)",
                    person_id,
                    start,
                    duration,
                )
                raise SchedulingConflictError(
                    "Time slot conflicts with an existing session",
                    details={"person_id": person_id, "scheduled_at": isoformat_utc(start)},
                )

    def _conditional_update(
        self, session_id: int, from_statuses: Sequence[str], values: Dict[str, Any]
    ) -> None:
        updated = session_crud.transition_session(
            self.db, session_id, from_statuses=from_statuses, values=values
        )
        if updated != 1:
            raise InvalidStateError(
                "Session changed state concurrently",
                details={"session_id": session_id},
            )

    def _transition(
        self,
        session_id: int,
        actor_id: int,
        *,
        target: str,
        values: Dict[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> models.MentoringSession:
        with self.transaction():
            session = self._load_for(session_id, actor_id)
            self._require_transition(session, target)
            self._conditional_update(
                session_id,
                (session.status,),
                dict(values, status=target, updated_at=self.clock()),
            )

        self.db.refresh(session)
        event_type, notification_type, verb = _TRANSITION_EVENTS[target]
        self.logger.info("Session %s %s by user_id=%s", session_id, verb, actor_id)
        self._announce(
            session,
            actor_id=actor_id,
            event_type=event_type,
            notification_type=notification_type,
            title=f"Session {verb}",
            message=f"'{session.title}' was {verb}.",
            extra=extra,
        )
        return session

    def _announce(
        self,
        session: models.MentoringSession,
        *,
        actor_id: int,
        event_type: str,
        notification_type: str,
        title: str,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Post-commit fan-out: realtime push to both parties, notification to the counterparty."""
        payload = {
            "sessionId": session.id,
            "mentorId": session.mentor_id,
            "menteeId": session.mentee_id,
            "status": session.status,
            "scheduledAt": isoformat_utc(session.scheduled_at),
            "duration": session.duration,
            "actorId": actor_id,
        }
        if extra:
            payload.update(extra)
        for user_id in (session.mentor_id, session.mentee_id):
            self._publish(user_id, event_type, payload)
        self._notify(
            recipient_id=session.counterparty_id(actor_id),
            actor_id=actor_id,
            event_type=notification_type,
            title=title,
            message=message,
            data={"status": session.status},
            session_id=session.id,
        )
