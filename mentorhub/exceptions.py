# mentorhub/exceptions.py
"""
Domain exceptions for the mentoring core.

Lifecycle managers raise these; the routers convert them to HTTP errors
with ``to_http_exception()``. Nothing below the router layer should raise
``HTTPException`` directly.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class MentorHubError(Exception):
    """Base exception for all domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundError(MentorHubError):
    """Request, session or user missing, or not owned by the caller."""

    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(MentorHubError):
    """Caller is not a participant of the entity being mutated."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(MentorHubError):
    """Transition not allowed from the entity's current status."""

    status_code = status.HTTP_409_CONFLICT


class DuplicateRequestError(MentorHubError):
    """An active request already exists for the mentor/mentee pair."""

    status_code = status.HTTP_409_CONFLICT


class RelationshipRequiredError(MentorHubError):
    """Mentee tried to book without an active relationship."""

    status_code = status.HTTP_403_FORBIDDEN


class SchedulingConflictError(MentorHubError):
    """Candidate interval overlaps an active session of a participant."""

    status_code = status.HTTP_409_CONFLICT


class PersistenceFailureError(MentorHubError):
    """The backing store failed; always a hard stop."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
