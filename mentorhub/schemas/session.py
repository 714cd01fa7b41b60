from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mentorhub.models.session import SessionStatus
from mentorhub.utils.timeutils import to_utc_naive

MAX_SESSION_MINUTES = 8 * 60

# ======================
# SESSION BOOKING MODELS
# ======================


class SessionBook(BaseModel):
    """Mentee-initiated booking against an established relationship."""
    mentor_id: int
    title: str = Field(..., min_length=1, max_length=200)
    scheduled_at: datetime
    duration: int = Field(60, gt=0, le=MAX_SESSION_MINUTES)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_start(cls, value):
        return to_utc_naive(value)


class SessionCreate(BaseModel):
    """Mentor-initiated session for any mentee."""
    mentee_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    scheduled_at: datetime
    duration: int = Field(60, gt=0, le=MAX_SESSION_MINUTES)
    meeting_link: Optional[str] = Field(None, max_length=255)

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_start(cls, value):
        return to_utc_naive(value)


# ======================
# SESSION UPDATE MODELS
# ======================


class SessionUpdate(BaseModel):
    """Fields a participant may change; anything else in the body is dropped."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0, le=MAX_SESSION_MINUTES)
    status: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_start(cls, value):
        return to_utc_naive(value)

    @field_validator("status")
    @classmethod
    def _known_status(cls, value):
        if value is not None and value not in SessionStatus.ALL:
            raise ValueError(f"status must be one of {', '.join(SessionStatus.ALL)}")
        return value


class SessionEnd(BaseModel):
    notes: Optional[str] = None
    summary: Optional[str] = None


class SessionCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class SessionReschedule(BaseModel):
    new_time: datetime
    reason: Optional[str] = Field(None, max_length=1000)

    @field_validator("new_time")
    @classmethod
    def _normalize_new_time(cls, value):
        return to_utc_naive(value)


class SessionNotes(BaseModel):
    notes: Optional[str] = None
    summary: Optional[str] = None


# ======================
# SESSION RESPONSE MODELS
# ======================


class SessionResponse(BaseModel):
    id: int
    mentor_id: int
    mentee_id: int
    title: str
    description: Optional[str] = None
    message: Optional[str] = None
    scheduled_at: datetime
    duration: int
    amount: float
    status: str
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    notes: Optional[str] = None
    summary: Optional[str] = None
    cancellation_reason: Optional[str] = None
    reschedule_reason: Optional[str] = None
    payment_status: str
    meeting_link: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    available: bool
    conflicts: int
