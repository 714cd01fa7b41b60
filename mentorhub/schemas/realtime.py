from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

from mentorhub.utils.timeutils import utcnow


class EventType:
    REQUEST_NEW = "request:new"
    REQUEST_DECISION = "request:decision"
    REQUEST_CANCELLED = "request:cancelled"
    MEETING_START = "meeting:start"
    MEETING_MESSAGE = "meeting:message"
    SESSION_BOOKED = "session:booked"
    SESSION_STARTED = "session:started"
    SESSION_COMPLETED = "session:completed"
    SESSION_CANCELLED = "session:cancelled"
    SESSION_RESCHEDULED = "session:rescheduled"
    SESSION_UPDATED = "session:updated"


class RealtimeEvent(BaseModel):
    """Transient push addressed to one channel; never persisted."""
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    sent_at: datetime = Field(default_factory=utcnow)
