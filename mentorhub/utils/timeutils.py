"""UTC helpers. Every instant is stored as naive UTC."""

from datetime import UTC, datetime
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None, microsecond=0)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_utc_naive(value).isoformat() + "Z"
