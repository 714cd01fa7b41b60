# mentorhub/schemas/__init__.py

from .auth import Actor, TokenData
from .user import MentorListing, UserSummary
from .request import (
    AcceptRequestResponse,
    MentoringRequestCreate,
    MentoringRequestResponse,
    RequestAccept,
    RequestDecline,
)
from .session import (
    AvailabilityResponse,
    SessionBook,
    SessionCancel,
    SessionCreate,
    SessionEnd,
    SessionNotes,
    SessionReschedule,
    SessionResponse,
    SessionUpdate,
)
from .notification import NotificationResponse
from .realtime import EventType, RealtimeEvent

__all__ = [
    "Actor",
    "TokenData",
    "UserSummary",
    "MentorListing",
    "AcceptRequestResponse",
    "MentoringRequestCreate",
    "MentoringRequestResponse",
    "RequestAccept",
    "RequestDecline",
    "AvailabilityResponse",
    "SessionBook",
    "SessionCancel",
    "SessionCreate",
    "SessionEnd",
    "SessionNotes",
    "SessionReschedule",
    "SessionResponse",
    "SessionUpdate",
    "NotificationResponse",
    "EventType",
    "RealtimeEvent",
]
