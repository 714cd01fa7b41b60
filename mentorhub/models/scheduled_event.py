from sqlalchemy import JSON, Column, Integer, String, Text, TIMESTAMP, func

from mentorhub.database import Base


class ScheduledEventStatus:
    QUEUED = "queued"
    DELIVERED = "delivered"
    FAILED = "failed"


class ScheduledEvent(Base):
    """Deferred realtime event, published by the sweeper once due."""

    __tablename__ = "scheduled_events"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    recipients = Column(JSON, nullable=False)  # list of user ids
    delivered_to = Column(JSON)  # recipients already published to
    payload = Column(JSON, nullable=False)
    due_at = Column(TIMESTAMP, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ScheduledEventStatus.QUEUED, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
