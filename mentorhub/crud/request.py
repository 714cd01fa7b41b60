from typing import List, Optional

from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.models.relationship import RelationshipStatus
from mentorhub.models.request import RequestStatus


def get_request(db: Session, request_id: int) -> Optional[models.MentoringRequest]:
    return db.query(models.MentoringRequest).filter(
        models.MentoringRequest.id == request_id
    ).first()


def get_active_request_for_pair(
    db: Session, mentor_id: int, mentee_id: int
) -> Optional[models.MentoringRequest]:
    return db.query(models.MentoringRequest).filter(
        models.MentoringRequest.mentor_id == mentor_id,
        models.MentoringRequest.mentee_id == mentee_id,
        models.MentoringRequest.status.in_(RequestStatus.ACTIVE),
    ).first()


def create_request(
    db: Session,
    *,
    mentee_id: int,
    mentor_id: int,
    message: Optional[str],
    goals: Optional[str],
    preferred_schedule: Optional[str],
) -> models.MentoringRequest:
    request = models.MentoringRequest(
        mentee_id=mentee_id,
        mentor_id=mentor_id,
        message=message,
        goals=goals,
        preferred_schedule=preferred_schedule,
        status=RequestStatus.PENDING,
    )
    db.add(request)
    db.flush()
    return request


def transition_request(
    db: Session,
    request_id: int,
    *,
    from_status: str,
    values: dict,
) -> int:
    """Conditional update; returns the affected row count (0 when the status moved)."""
    return db.query(models.MentoringRequest).filter(
        models.MentoringRequest.id == request_id,
        models.MentoringRequest.status == from_status,
    ).update(values, synchronize_session=False)


def list_requests(
    db: Session,
    *,
    mentor_id: Optional[int] = None,
    mentee_id: Optional[int] = None,
    status: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[models.MentoringRequest]:
    query = db.query(models.MentoringRequest)
    if mentor_id is not None:
        query = query.filter(models.MentoringRequest.mentor_id == mentor_id)
    if mentee_id is not None:
        query = query.filter(models.MentoringRequest.mentee_id == mentee_id)
    if status:
        query = query.filter(models.MentoringRequest.status == status)
    return (
        query.order_by(models.MentoringRequest.created_at.desc(), models.MentoringRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_relationship(
    db: Session, mentor_id: int, mentee_id: int
) -> Optional[models.MentorMenteeRelationship]:
    return db.query(models.MentorMenteeRelationship).filter(
        models.MentorMenteeRelationship.mentor_id == mentor_id,
        models.MentorMenteeRelationship.mentee_id == mentee_id,
    ).first()


def has_active_relationship(db: Session, mentor_id: int, mentee_id: int) -> bool:
    return db.query(models.MentorMenteeRelationship.id).filter(
        models.MentorMenteeRelationship.mentor_id == mentor_id,
        models.MentorMenteeRelationship.mentee_id == mentee_id,
        models.MentorMenteeRelationship.status == RelationshipStatus.ACTIVE,
    ).first() is not None


def list_relationships(db: Session, user_id: int) -> List[models.MentorMenteeRelationship]:
    return db.query(models.MentorMenteeRelationship).filter(
        (models.MentorMenteeRelationship.mentor_id == user_id)
        | (models.MentorMenteeRelationship.mentee_id == user_id),
        models.MentorMenteeRelationship.status == RelationshipStatus.ACTIVE,
    ).order_by(models.MentorMenteeRelationship.created_at.desc()).all()
