# mentorhub/api/requests.py
"""
Mentoring request endpoints.

Mentees submit, list and withdraw requests; mentors list pending requests
and accept or decline them. All rules live in RequestLifecycleManager.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.database import get_db
from mentorhub.exceptions import MentorHubError
from mentorhub.schemas import (
    AcceptRequestResponse,
    Actor,
    MentoringRequestCreate,
    MentoringRequestResponse,
    RequestAccept,
    RequestDecline,
    UserSummary,
)
from mentorhub.services.event_channel import EventChannel, get_event_channel
from mentorhub.services.request_service import RequestLifecycleManager
from mentorhub.utils.security import get_current_actor, require_mentee, require_mentor

router = APIRouter(prefix="/requests", tags=["requests"])


def get_request_manager(
    db: Session = Depends(get_db),
    events: EventChannel = Depends(get_event_channel),
) -> RequestLifecycleManager:
    return RequestLifecycleManager(db, events)


def _to_response(request: models.MentoringRequest) -> MentoringRequestResponse:
    response = MentoringRequestResponse.model_validate(request)
    response.mentee_name = request.mentee.name if request.mentee else None
    response.mentor_name = request.mentor.name if request.mentor else None
    return response


# ======================
# MENTEE
# ======================
@router.post("", status_code=201)
def submit_request(
    body: MentoringRequestCreate,
    actor: Actor = Depends(require_mentee),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    try:
        request_id = manager.submit_request(
            actor.id,
            body.mentor_id,
            message=body.message,
            goals=body.goals,
            preferred_schedule=body.preferred_schedule,
        )
    except MentorHubError as exc:
        raise exc.to_http_exception()
    return {"message": "Mentoring request sent successfully", "request_id": request_id}


@router.get("/my", response_model=List[MentoringRequestResponse])
def get_my_requests(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(require_mentee),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    requests = manager.list_for_mentee(actor.id, status=status, page=page, limit=limit)
    return [_to_response(r) for r in requests]


@router.post("/{request_id}/cancel", response_model=MentoringRequestResponse)
def cancel_request(
    request_id: int,
    actor: Actor = Depends(require_mentee),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    try:
        request = manager.cancel_request(actor.id, request_id)
    except MentorHubError as exc:
        raise exc.to_http_exception()
    return _to_response(request)


# ======================
# MENTOR
# ======================
@router.get("/pending", response_model=List[MentoringRequestResponse])
def get_pending_requests(
    actor: Actor = Depends(require_mentor),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    return [_to_response(r) for r in manager.list_pending_for_mentor(actor.id)]


@router.post("/{request_id}/accept", response_model=AcceptRequestResponse)
def accept_request(
    request_id: int,
    body: Optional[RequestAccept] = None,
    actor: Actor = Depends(require_mentor),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    body = body or RequestAccept()
    try:
        result = manager.accept_request(
            actor.id,
            request_id,
            meeting_time=body.meeting_time,
            meeting_link=body.meeting_link,
        )
    except MentorHubError as exc:
        raise exc.to_http_exception()
    return AcceptRequestResponse(
        message="Request accepted successfully",
        request_id=request_id,
        relationship_id=result.relationship.id,
        meeting_scheduled_at=result.meeting_at,
        meeting_link=result.meeting_link,
    )


@router.post("/{request_id}/decline", response_model=MentoringRequestResponse)
def decline_request(
    request_id: int,
    body: Optional[RequestDecline] = None,
    actor: Actor = Depends(require_mentor),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    body = body or RequestDecline()
    try:
        request = manager.decline_request(actor.id, request_id, reason=body.reason)
    except MentorHubError as exc:
        raise exc.to_http_exception()
    return _to_response(request)


# ======================
# EITHER SIDE
# ======================
@router.get("/relationships", response_model=List[UserSummary])
def get_relationships(
    actor: Actor = Depends(get_current_actor),
    manager: RequestLifecycleManager = Depends(get_request_manager),
):
    """Counterparts the caller has an active mentoring relationship with."""
    relationships = manager.list_relationships(actor.id)
    counterparts = []
    for rel in relationships:
        other = rel.mentee if rel.mentor_id == actor.id else rel.mentor
        if other is not None:
            counterparts.append(UserSummary.model_validate(other))
    return counterparts
