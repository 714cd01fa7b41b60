from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from mentorhub.models.notification import Notification

logger = logging.getLogger(__name__)


def list_user_notifications(
    db: Session,
    *,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
) -> List[Notification]:
    query = db.query(Notification).filter(Notification.recipient_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_notification_read(
    db: Session,
    *,
    user_id: int,
    notification_id: int,
) -> Optional[Notification]:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == user_id,
    ).first()
    if not notification:
        return None
    notification.is_read = True
    db.commit()
    return notification


def mark_all_notifications_read(db: Session, *, user_id: int) -> int:
    updated = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return int(updated)


def get_unread_count(db: Session, *, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read.is_(False),
    ).count()


def create_notification(
    db: Session,
    *,
    recipient_id: int,
    actor_id: Optional[int],
    event_type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    session_id: Optional[int] = None,
    request_id: Optional[int] = None,
) -> Notification:
    """Stage a notification; the caller owns the commit."""
    notification = Notification(
        recipient_id=recipient_id,
        actor_id=actor_id,
        session_id=session_id,
        request_id=request_id,
        event_type=event_type,
        title=title,
        message=message,
        data=data,
    )
    db.add(notification)
    db.flush()
    logger.debug("Notification %s staged for recipient_id=%s", event_type, recipient_id)
    return notification
