# mentorhub/services/mentor_directory.py
"""
Read-only mentor discovery.

Lists active mentors with their rate and availability, and flags the
viewer's existing relationship or pending request with each one.
"""

from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.config import settings
from mentorhub.models.relationship import RelationshipStatus
from mentorhub.models.request import RequestStatus
from mentorhub.models.user import UserRole


def _active_mentee_counts(db: Session):
    return (
        db.query(
            models.MentorMenteeRelationship.mentor_id.label("mentor_id"),
            func.count(models.MentorMenteeRelationship.id).label("mentee_count"),
        )
        .filter(models.MentorMenteeRelationship.status == RelationshipStatus.ACTIVE)
        .group_by(models.MentorMenteeRelationship.mentor_id)
        .subquery()
    )


def list_mentors(
    db: Session,
    viewer_id: int,
    *,
    search: Optional[str] = None,
    max_rate: Optional[float] = None,
    page: int = 1,
    limit: int = 12,
) -> List[dict]:
    page = max(1, page)
    mentee_counts = _active_mentee_counts(db)
    effective_rate = func.coalesce(models.User.hourly_rate, settings.DEFAULT_HOURLY_RATE)

    query = (
        db.query(models.User, func.coalesce(mentee_counts.c.mentee_count, 0))
        .outerjoin(mentee_counts, mentee_counts.c.mentor_id == models.User.id)
        .filter(
            models.User.role == UserRole.MENTOR,
            models.User.is_active.is_(True),
            models.User.id != viewer_id,
        )
    )
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                models.User.name.ilike(pattern),
                models.User.email.ilike(pattern),
                models.User.availability.ilike(pattern),
            )
        )
    if max_rate is not None:
        query = query.filter(effective_rate <= max_rate)

    rows = (
        query.order_by(models.User.name.asc(), models.User.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    mentor_ids = [mentor.id for mentor, _ in rows]
    if not mentor_ids:
        return []

    relationship_status = dict(
        db.query(
            models.MentorMenteeRelationship.mentor_id,
            models.MentorMenteeRelationship.status,
        ).filter(
            models.MentorMenteeRelationship.mentee_id == viewer_id,
            models.MentorMenteeRelationship.mentor_id.in_(mentor_ids),
        ).all()
    )
    pending = {
        mentor_id
        for (mentor_id,) in db.query(models.MentoringRequest.mentor_id).filter(
            models.MentoringRequest.mentee_id == viewer_id,
            models.MentoringRequest.mentor_id.in_(mentor_ids),
            models.MentoringRequest.status == RequestStatus.PENDING,
        )
    }

    return [
        {
            "id": mentor.id,
            "name": mentor.name,
            "email": mentor.email,
            "hourly_rate": mentor.hourly_rate or settings.DEFAULT_HOURLY_RATE,
            "availability": mentor.availability,
            "active_mentees": int(mentee_count or 0),
            "relationship_status": relationship_status.get(mentor.id),
            "has_relationship": relationship_status.get(mentor.id) == RelationshipStatus.ACTIVE,
            "has_pending_request": mentor.id in pending,
        }
        for mentor, mentee_count in rows
    ]
