# mentorhub/services/dashboard_service.py
"""
Read-only rollups over a user's sessions for the dashboard endpoints.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from mentorhub import models
from mentorhub.crud import session as session_crud
from mentorhub.models.session import PaymentStatus, SessionStatus
from mentorhub.utils.timeutils import utcnow

PERIOD_DAYS = {"week": 7, "month": 30, "year": 365}


def _period_start(period: str, now: datetime) -> datetime:
    return now - timedelta(days=PERIOD_DAYS.get(period, PERIOD_DAYS["month"]))


def _participant_filter(user_id: int):
    return (models.MentoringSession.mentor_id == user_id) | (
        models.MentoringSession.mentee_id == user_id
    )


def session_stats(
    db: Session, user_id: int, period: str = "month", now: Optional[datetime] = None
) -> dict:
    now = now or utcnow()
    since = _period_start(period, now)

    rows = db.query(
        models.MentoringSession.status,
        func.count(models.MentoringSession.id),
        func.coalesce(func.sum(models.MentoringSession.duration), 0),
    ).filter(
        _participant_filter(user_id),
        models.MentoringSession.scheduled_at >= since,
    ).group_by(models.MentoringSession.status).all()

    counts = {status: 0 for status in SessionStatus.ALL}
    completed_minutes = 0
    for status, count, minutes in rows:
        counts[status] = count
        if status == SessionStatus.COMPLETED:
            completed_minutes = int(minutes or 0)

    total = sum(counts.values())
    completed = counts[SessionStatus.COMPLETED]
    return {
        "period": period if period in PERIOD_DAYS else "month",
        "total_sessions": total,
        "completed_sessions": completed,
        "cancelled_sessions": counts[SessionStatus.CANCELLED],
        "upcoming_sessions": counts[SessionStatus.UPCOMING],
        "in_progress_sessions": counts[SessionStatus.IN_PROGRESS],
        "average_duration_minutes": round(completed_minutes / completed, 1) if completed else 0,
        "total_hours": round(completed_minutes / 60.0, 1),
        "completion_rate": round(completed / total * 100, 1) if total else 0,
    }


def mentor_earnings(db: Session, mentor_id: int, now: Optional[datetime] = None) -> dict:
    """Current month, all-time and unpaid totals over completed sessions."""
    now = now or utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    completed = db.query(models.MentoringSession).filter(
        models.MentoringSession.mentor_id == mentor_id,
        models.MentoringSession.status == SessionStatus.COMPLETED,
    )

    total = completed.with_entities(
        func.coalesce(func.sum(models.MentoringSession.amount), 0.0)
    ).scalar()
    this_month = completed.filter(
        models.MentoringSession.scheduled_at >= month_start
    ).with_entities(func.coalesce(func.sum(models.MentoringSession.amount), 0.0)).scalar()
    unpaid = completed.filter(models.MentoringSession.payment_status != PaymentStatus.PAID)
    pending = unpaid.with_entities(
        func.coalesce(func.sum(models.MentoringSession.amount), 0.0)
    ).scalar()

    return {
        "current_month": round(float(this_month or 0), 2),
        "total": round(float(total or 0), 2),
        "pending": round(float(pending or 0), 2),
        "completed_sessions": completed.count(),
        "pending_payment_sessions": unpaid.count(),
    }


def upcoming_sessions(
    db: Session, user_id: int, limit: int = 5, now: Optional[datetime] = None
) -> List[models.MentoringSession]:
    now = now or utcnow()
    return session_crud.list_sessions_for_user(
        db,
        user_id,
        statuses=(SessionStatus.UPCOMING,),
        date_from=now,
        newest_first=False,
        limit=limit,
    )


def session_history(
    db: Session,
    user_id: int,
    *,
    statuses: Optional[Sequence[str]] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    other_party_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> List[models.MentoringSession]:
    page = max(1, page)
    return session_crud.list_sessions_for_user(
        db,
        user_id,
        statuses=statuses or (SessionStatus.COMPLETED, SessionStatus.CANCELLED),
        date_from=date_from,
        date_to=date_to,
        other_party_id=other_party_id,
        offset=(page - 1) * limit,
        limit=limit,
    )
