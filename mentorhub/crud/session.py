from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.models.session import SessionStatus


def get_session(db: Session, session_id: int) -> Optional[models.MentoringSession]:
    return db.query(models.MentoringSession).filter(
        models.MentoringSession.id == session_id
    ).first()


def get_active_sessions_for_person(
    db: Session,
    person_id: int,
    *,
    starting_before: Optional[datetime] = None,
    exclude_session_id: Optional[int] = None,
) -> List[models.MentoringSession]:
    """Upcoming/in-progress sessions where ``person_id`` is mentor or mentee."""
    query = db.query(models.MentoringSession).filter(
        (models.MentoringSession.mentor_id == person_id)
        | (models.MentoringSession.mentee_id == person_id),
        models.MentoringSession.status.in_(SessionStatus.ACTIVE),
    )
    if starting_before is not None:
        query = query.filter(models.MentoringSession.scheduled_at < starting_before)
    if exclude_session_id is not None:
        query = query.filter(models.MentoringSession.id != exclude_session_id)
    return query.all()


def transition_session(
    db: Session,
    session_id: int,
    *,
    from_statuses: Sequence[str],
    values: dict,
) -> int:
    """Conditional update guarded on the current status; returns affected rows."""
    return db.query(models.MentoringSession).filter(
        models.MentoringSession.id == session_id,
        models.MentoringSession.status.in_(tuple(from_statuses)),
    ).update(values, synchronize_session=False)


def list_sessions_for_user(
    db: Session,
    user_id: int,
    *,
    statuses: Optional[Sequence[str]] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    other_party_id: Optional[int] = None,
    newest_first: bool = True,
    offset: int = 0,
    limit: int = 20,
) -> List[models.MentoringSession]:
    query = db.query(models.MentoringSession).filter(
        (models.MentoringSession.mentor_id == user_id)
        | (models.MentoringSession.mentee_id == user_id)
    )
    if statuses:
        query = query.filter(models.MentoringSession.status.in_(tuple(statuses)))
    if other_party_id is not None:
        query = query.filter(
            (models.MentoringSession.mentor_id == other_party_id)
            | (models.MentoringSession.mentee_id == other_party_id)
        )
    if date_from is not None:
        query = query.filter(models.MentoringSession.scheduled_at >= date_from)
    if date_to is not None:
        query = query.filter(models.MentoringSession.scheduled_at <= date_to)
    order = (
        models.MentoringSession.scheduled_at.desc()
        if newest_first
        else models.MentoringSession.scheduled_at.asc()
    )
    return query.order_by(order).offset(offset).limit(limit).all()
