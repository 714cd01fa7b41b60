# mentorhub/services/base.py
"""Shared plumbing for the lifecycle managers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.exceptions import PersistenceFailureError
from mentorhub.services import notification_service
from mentorhub.services.event_channel import EventChannel


class BaseService:
    """Holds the injected store session and event channel."""

    def __init__(self, db: Session, events: Optional[EventChannel] = None):
        self.db = db
        self.events = events
        self.logger = logging.getLogger(self.__class__.__module__)

    @contextmanager
    def transaction(self):
        """
        Commit on success, roll back on any error.

        Store errors surface as PersistenceFailureError; domain errors
        propagate unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.logger.error("Transaction failed: %s", exc)
            raise PersistenceFailureError("Database operation failed") from exc
        except Exception:
            self.db.rollback()
            raise

    def _publish(self, user_id: int, event_type: str, payload: Dict[str, Any]) -> None:
        """Best-effort realtime push; failures are logged, never raised."""
        if self.events is None:
            return
        try:
            self.events.publish(user_id, event_type, payload)
        except Exception as exc:
            self.logger.warning(
                "Realtime publish failed (event=%s, user_id=%s): %s",
                event_type,
                user_id,
                exc,
            )

    def _notify(
        self,
        *,
        recipient_id: int,
        actor_id: Optional[int],
        event_type: str,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        session_id: Optional[int] = None,
        request_id: Optional[int] = None,
    ) -> None:
        """Persist a durable notification in its own transaction, best effort."""
        try:
            notification_service.create_notification(
                self.db,
                recipient_id=recipient_id,
                actor_id=actor_id,
                event_type=event_type,
                title=title,
                message=message,
                data=data,
                session_id=session_id,
                request_id=request_id,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.logger.warning(
                "Notification not stored (event=%s, recipient_id=%s): %s",
                event_type,
                recipient_id,
                exc,
            )
