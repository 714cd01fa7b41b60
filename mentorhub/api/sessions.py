# mentorhub/api/sessions.py
"""
Session Management API.

Booking, mentor-created sessions, lifecycle transitions, notes, history
and availability. Handlers resolve the actor, call
SessionLifecycleManager and map domain errors to HTTP errors.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from mentorhub.database import get_db
from mentorhub.exceptions import AccessDeniedError, MentorHubError
from mentorhub.models.session import SessionStatus
from mentorhub.schemas import (
    Actor,
    AvailabilityResponse,
    SessionBook,
    SessionCancel,
    SessionCreate,
    SessionEnd,
    SessionNotes,
    SessionReschedule,
    SessionResponse,
    SessionUpdate,
)
from mentorhub.services import availability, dashboard_service
from mentorhub.services.event_channel import EventChannel, get_event_channel
from mentorhub.services.session_service import SessionLifecycleManager
from mentorhub.utils.security import get_current_actor, require_mentee, require_mentor
from mentorhub.utils.timeutils import to_utc_naive

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_manager(
    db: Session = Depends(get_db),
    events: EventChannel = Depends(get_event_channel),
) -> SessionLifecycleManager:
    return SessionLifecycleManager(db, events)


# ======================
# CREATION
# ======================
@router.post("/book", response_model=SessionResponse, status_code=201)
def book_session(
    body: SessionBook,
    actor: Actor = Depends(require_mentee),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.book_session(
            actor.id,
            body.mentor_id,
            body.title,
            body.scheduled_at,
            body.duration,
            message=body.message,
        )
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.post("", response_model=SessionResponse, status_code=201)
def create_session(
    body: SessionCreate,
    actor: Actor = Depends(require_mentor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.create_session(actor.id, body)
    except MentorHubError as exc:
        raise exc.to_http_exception()


# ======================
# LISTING
# ======================
@router.get("/upcoming", response_model=List[SessionResponse])
def get_upcoming_sessions(
    limit: int = Query(5, ge=1, le=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return dashboard_service.upcoming_sessions(db, actor.id, limit=limit)


@router.get("/history", response_model=List[SessionResponse])
def get_session_history(
    status: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    other_party_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    statuses = None
    if status:
        statuses = [s.strip() for s in status.split(",") if s.strip()]
        unknown = [s for s in statuses if s not in SessionStatus.ALL]
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown status: {', '.join(unknown)}")
    return dashboard_service.session_history(
        db,
        actor.id,
        statuses=statuses,
        date_from=to_utc_naive(date_from),
        date_to=to_utc_naive(date_to),
        other_party_id=other_party_id,
        page=page,
        limit=limit,
    )


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    start: datetime,
    duration: int = Query(60, gt=0, le=480),
    person_id: Optional[int] = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Whether ``person_id`` (default: the caller) is free for the interval.

    Only the caller's own timeline or an active mentoring partner's is visible.
    """
    person_id = person_id or actor.id
    try:
        if not availability.can_view_timeline(db, actor.id, person_id):
            raise AccessDeniedError(
                "You can only check availability for yourself or your mentoring partners",
                details={"person_id": person_id},
            )
        return availability.check_availability(db, person_id, to_utc_naive(start), duration)
    except MentorHubError as exc:
        raise exc.to_http_exception()


# ======================
# SINGLE SESSION
# ======================
@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: int,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.get_session(session_id, actor.id)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.put("/{session_id}", response_model=SessionResponse)
def update_session(
    session_id: int,
    body: SessionUpdate,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.update_session(session_id, actor.id, body)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.post("/{session_id}/start", response_model=SessionResponse)
def start_session(
    session_id: int,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.start_session(session_id, actor.id)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.post("/{session_id}/end", response_model=SessionResponse)
def end_session(
    session_id: int,
    body: Optional[SessionEnd] = None,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    body = body or SessionEnd()
    try:
        return manager.end_session(session_id, actor.id, notes=body.notes, summary=body.summary)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.put("/{session_id}/cancel", response_model=SessionResponse)
def cancel_session(
    session_id: int,
    body: Optional[SessionCancel] = None,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    body = body or SessionCancel()
    try:
        return manager.cancel_session(session_id, actor.id, reason=body.reason)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.put("/{session_id}/reschedule", response_model=SessionResponse)
def reschedule_session(
    session_id: int,
    body: SessionReschedule,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.reschedule_session(
            session_id, actor.id, body.new_time, reason=body.reason
        )
    except MentorHubError as exc:
        raise exc.to_http_exception()


# ======================
# NOTES
# ======================
@router.get("/{session_id}/notes", response_model=SessionNotes)
def get_session_notes(
    session_id: int,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        return manager.get_session_notes(session_id, actor.id)
    except MentorHubError as exc:
        raise exc.to_http_exception()


@router.put("/{session_id}/notes", response_model=SessionNotes)
def update_session_notes(
    session_id: int,
    body: SessionNotes,
    actor: Actor = Depends(get_current_actor),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    try:
        session = manager.update_session_notes(
            session_id, actor.id, notes=body.notes, summary=body.summary
        )
    except MentorHubError as exc:
        raise exc.to_http_exception()
    return SessionNotes(notes=session.notes, summary=session.summary)
