from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    hourly_rate: Optional[float] = None
    availability: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MentorListing(BaseModel):
    id: int
    name: str
    email: EmailStr
    hourly_rate: float
    availability: Optional[str] = None
    active_mentees: int = 0
    relationship_status: Optional[str] = None
    has_relationship: bool = False
    has_pending_request: bool = False
