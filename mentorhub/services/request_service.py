# mentorhub/services/request_service.py
"""
Mentoring request lifecycle.

    pending -> accepted | declined | cancelled   (all terminal)

Accepting a request creates the mentor/mentee relationship in the same
transaction. Status flips are conditional updates on ``status = pending``
so a racing accept and decline resolve to exactly one winner; the loser
gets InvalidStateError. Realtime events, notifications and the deferred
``meeting:start`` event are produced only after the commit and never
fail the transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.crud import request as request_crud
from mentorhub.crud import user as user_crud
from mentorhub.exceptions import (
    DuplicateRequestError,
    InvalidStateError,
    NotFoundError,
)
from mentorhub.models.relationship import RelationshipStatus
from mentorhub.models.request import RequestStatus
from mentorhub.models.user import UserRole
from mentorhub.schemas.realtime import EventType
from mentorhub.services.base import BaseService
from mentorhub.services.event_channel import EventChannel
from mentorhub.services.meeting_links import MeetingLinkGenerator, generate_meeting_link
from mentorhub.services.scheduler import compute_due_at, schedule_event
from mentorhub.utils.timeutils import isoformat_utc, utcnow


@dataclass
class AcceptResult:
    request: models.MentoringRequest
    relationship: models.MentorMenteeRelationship
    meeting_at: datetime
    meeting_link: str


class RequestLifecycleManager(BaseService):
    """Owns MentoringRequest transitions and the relationship they create."""

    def __init__(
        self,
        db: Session,
        events: Optional[EventChannel] = None,
        *,
        link_generator: MeetingLinkGenerator = generate_meeting_link,
        clock=utcnow,
    ):
        super().__init__(db, events)
        self.link_generator = link_generator
        self.clock = clock

    # ======================
    # SUBMIT
    # ======================
    def submit_request(
        self,
        mentee_id: int,
        mentor_id: int,
        message: Optional[str] = None,
        goals: Optional[str] = None,
        preferred_schedule: Optional[str] = None,
    ) -> int:
        with self.transaction():
            mentor = user_crud.get_user_with_role(self.db, mentor_id, UserRole.MENTOR)
            if mentor is None:
                raise NotFoundError("Mentor not found", details={"mentor_id": mentor_id})

            if request_crud.get_active_request_for_pair(self.db, mentor_id, mentee_id):
                raise DuplicateRequestError(
                    "You already have an active request with this mentor",
                    details={"mentor_id": mentor_id},
                )

            try:
                request = request_crud.create_request(
                    self.db,
                    mentee_id=mentee_id,
                    mentor_id=mentor_id,
                    message=message,
                    goals=goals,
                    preferred_schedule=preferred_schedule,
                )
            except IntegrityError as exc:
                # a concurrent submit for the same pair won the unique index
                raise DuplicateRequestError(
                    "You already have an active request with this mentor",
                    details={"mentor_id": mentor_id},
                ) from exc
            request_id = request.id

        self.logger.info(
            "Mentoring request %s submitted (mentee_id=%s, mentor_id=%s)",
            request_id,
            mentee_id,
            mentor_id,
        )
        self._publish(
            mentor_id,
            EventType.REQUEST_NEW,
            {
                "requestId": request_id,
                "mentorId": mentor_id,
                "menteeId": mentee_id,
                "message": message,
                "goals": goals,
                "preferredSchedule": preferred_schedule,
                "createdAt": isoformat_utc(self.clock()),
            },
        )
        self._notify(
            recipient_id=mentor_id,
            actor_id=mentee_id,
            event_type="request_received",
            title="New mentoring request",
            message="You received a new mentoring request.",
            data={"goals": goals, "preferred_schedule": preferred_schedule},
            request_id=request_id,
        )
        return request_id

    # ======================
    # ACCEPT
    # ======================
    def accept_request(
        self,
        mentor_id: int,
        request_id: int,
        meeting_time: Optional[datetime] = None,
        meeting_link: Optional[str] = None,
    ) -> AcceptResult:
        now = self.clock()
        with self.transaction():
            request = self._load_owned(request_id, mentor_id=mentor_id)
            self._require_pending(request, "accepted")
            self._flip(
                request_id,
                {
                    "status": RequestStatus.ACCEPTED,
                    "decided_at": now,
                    "updated_at": now,
                },
            )
            relationship = self._ensure_relationship(mentor_id, request.mentee_id)

        mentee_id = request.mentee_id
        self.logger.info(
            "Mentoring request %s accepted (relationship_id=%s)", request_id, relationship.id
        )

        self._publish(
            mentee_id,
            EventType.REQUEST_DECISION,
            {
                "requestId": request_id,
                "status": RequestStatus.ACCEPTED,
                "mentorId": mentor_id,
                "reason": None,
                "decidedAt": isoformat_utc(now),
            },
        )
        self._notify(
            recipient_id=mentee_id,
            actor_id=mentor_id,
            event_type="request_accepted",
            title="Mentoring request accepted",
            message="Your mentoring request was accepted.",
            data={"relationship_id": relationship.id},
            request_id=request_id,
        )

        meeting_at = compute_due_at(meeting_time, now=now)
        link = meeting_link or self.link_generator()
        self._schedule_meeting_start(
            request_id=request_id,
            mentor_id=mentor_id,
            mentee_id=mentee_id,
            meeting_at=meeting_at,
            link=link,
        )
        return AcceptResult(
            request=request,
            relationship=relationship,
            meeting_at=meeting_at,
            meeting_link=link,
        )

    # ======================
    # DECLINE / CANCEL
    # ======================
    def decline_request(
        self, mentor_id: int, request_id: int, reason: Optional[str] = None
    ) -> models.MentoringRequest:
        now = self.clock()
        with self.transaction():
            request = self._load_owned(request_id, mentor_id=mentor_id)
            self._require_pending(request, "declined")
            self._flip(
                request_id,
                {
                    "status": RequestStatus.DECLINED,
                    "decline_reason": reason,
                    "decided_at": now,
                    "updated_at": now,
                },
            )

        self.logger.info("Mentoring request %s declined", request_id)
        self._publish(
            request.mentee_id,
            EventType.REQUEST_DECISION,
            {
                "requestId": request_id,
                "status": RequestStatus.DECLINED,
                "mentorId": mentor_id,
                "reason": reason or None,
                "decidedAt": isoformat_utc(now),
            },
        )
        self._notify(
            recipient_id=request.mentee_id,
            actor_id=mentor_id,
            event_type="request_declined",
            title="Mentoring request declined",
            message=(
                f"Your mentoring request was declined. Reason: {reason}"
                if reason
                else "Your mentoring request was declined."
            ),
            data={"reason": reason},
            request_id=request_id,
        )
        return request

    def cancel_request(self, mentee_id: int, request_id: int) -> models.MentoringRequest:
        now = self.clock()
        with self.transaction():
            request = self._load_owned(request_id, mentee_id=mentee_id)
            self._require_pending(request, "cancelled")
            self._flip(
                request_id,
                {"status": RequestStatus.CANCELLED, "updated_at": now},
            )

        self.logger.info("Mentoring request %s cancelled by mentee", request_id)
        self._publish(
            request.mentor_id,
            EventType.REQUEST_CANCELLED,
            {
                "requestId": request_id,
                "menteeId": mentee_id,
                "cancelledAt": isoformat_utc(now),
            },
        )
        self._notify(
            recipient_id=request.mentor_id,
            actor_id=mentee_id,
            event_type="request_cancelled",
            title="Mentoring request withdrawn",
            message="A mentee withdrew their mentoring request.",
            request_id=request_id,
        )
        return request

    # ======================
    # QUERIES
    # ======================
    def list_pending_for_mentor(self, mentor_id: int) -> List[models.MentoringRequest]:
        return request_crud.list_requests(
            self.db, mentor_id=mentor_id, status=RequestStatus.PENDING, limit=100
        )

    def list_for_mentee(
        self,
        mentee_id: int,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> List[models.MentoringRequest]:
        page = max(1, page)
        return request_crud.list_requests(
            self.db,
            mentee_id=mentee_id,
            status=status,
            offset=(page - 1) * limit,
            limit=limit,
        )

    def list_relationships(self, user_id: int) -> List[models.MentorMenteeRelationship]:
        return request_crud.list_relationships(self.db, user_id)

    # ======================
    # HELPERS
    # ======================
    def _load_owned(
        self,
        request_id: int,
        *,
        mentor_id: Optional[int] = None,
        mentee_id: Optional[int] = None,
    ) -> models.MentoringRequest:
        request = request_crud.get_request(self.db, request_id)
        if request is None:
            raise NotFoundError("Request not found", details={"request_id": request_id})
        if mentor_id is not None and request.mentor_id != mentor_id:
            raise NotFoundError("Request not found", details={"request_id": request_id})
        if mentee_id is not None and request.mentee_id != mentee_id:
            raise NotFoundError("Request not found", details={"request_id": request_id})
        return request

    @staticmethod
    def _require_pending(request: models.MentoringRequest, target: str) -> None:
        if request.status != RequestStatus.PENDING:
            raise InvalidStateError(
                f"Only pending requests can be {target}",
                details={"request_id": request.id, "status": request.status},
            )

    def _flip(self, request_id: int, values: dict) -> None:
        updated = request_crud.transition_request(
            self.db, request_id, from_status=RequestStatus.PENDING, values=values
        )
        if updated != 1:
            raise InvalidStateError(
                "Request was already decided",
                details={"request_id": request_id},
            )

    def _ensure_relationship(
        self, mentor_id: int, mentee_id: int
    ) -> models.MentorMenteeRelationship:
        relationship = request_crud.get_relationship(self.db, mentor_id, mentee_id)
        if relationship is None:
            relationship = models.MentorMenteeRelationship(
                mentor_id=mentor_id,
                mentee_id=mentee_id,
                status=RelationshipStatus.ACTIVE,
            )
            self.db.add(relationship)
        elif relationship.status != RelationshipStatus.ACTIVE:
            relationship.status = RelationshipStatus.ACTIVE
        self.db.flush()
        return relationship

    def _schedule_meeting_start(
        self,
        *,
        request_id: int,
        mentor_id: int,
        mentee_id: int,
        meeting_at: datetime,
        link: str,
    ) -> None:
        payload = {
            "requestId": request_id,
            "mentorId": mentor_id,
            "menteeId": mentee_id,
            "scheduledAt": isoformat_utc(meeting_at),
            "meetLink": link,
        }
        try:
            schedule_event(
                self.db,
                event_type=EventType.MEETING_START,
                recipients=[mentor_id, mentee_id],
                payload=payload,
                due_at=meeting_at,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.logger.warning(
                "Could not schedule meeting:start for request %s: %s", request_id, exc
            )
