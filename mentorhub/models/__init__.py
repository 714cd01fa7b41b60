# mentorhub/models/__init__.py
# Import models in dependency order
from .user import User, UserRole
from .request import MentoringRequest, RequestStatus
from .relationship import MentorMenteeRelationship, RelationshipStatus
from .session import MentoringSession, PaymentStatus, SessionStatus, SESSION_TRANSITIONS
from .notification import Notification
from .scheduled_event import ScheduledEvent, ScheduledEventStatus

__all__ = [
    "User",
    "UserRole",
    "MentoringRequest",
    "RequestStatus",
    "MentorMenteeRelationship",
    "RelationshipStatus",
    "MentoringSession",
    "PaymentStatus",
    "SessionStatus",
    "SESSION_TRANSITIONS",
    "Notification",
    "ScheduledEvent",
    "ScheduledEventStatus",
]
