from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mentorhub.utils.timeutils import to_utc_naive

# ======================
# MENTORING REQUEST INPUT
# ======================


class MentoringRequestCreate(BaseModel):
    mentor_id: int
    message: Optional[str] = Field(None, max_length=2000)
    goals: Optional[str] = Field(None, max_length=2000)
    preferred_schedule: Optional[str] = Field(None, max_length=255)


class RequestAccept(BaseModel):
    """Optional meeting details supplied by the mentor on accept."""
    meeting_time: Optional[datetime] = None
    meeting_link: Optional[str] = Field(None, max_length=255)

    @field_validator("meeting_time")
    @classmethod
    def _normalize_meeting_time(cls, value):
        return to_utc_naive(value)


class RequestDecline(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# ======================
# MENTORING REQUEST RESPONSE
# ======================


class MentoringRequestResponse(BaseModel):
    id: int
    mentee_id: int
    mentor_id: int
    message: Optional[str] = None
    goals: Optional[str] = None
    preferred_schedule: Optional[str] = None
    status: str
    decline_reason: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    mentee_name: Optional[str] = None
    mentor_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AcceptRequestResponse(BaseModel):
    message: str
    request_id: int
    relationship_id: int
    meeting_scheduled_at: datetime
    meeting_link: str
