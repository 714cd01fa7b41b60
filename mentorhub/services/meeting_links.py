import secrets
import string
from typing import Callable

from mentorhub.config import settings

MeetingLinkGenerator = Callable[[], str]

_ALPHABET = string.ascii_lowercase


def _part(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_meeting_link() -> str:
    """Shareable join URL in the ``abc-defg-hij`` shape."""
    base = settings.MEETING_LINK_BASE_URL.rstrip("/")
    return f"{base}/{_part(3)}-{_part(4)}-{_part(3)}"
