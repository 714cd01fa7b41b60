# mentorhub/api/__init__.py
# This file makes the api directory a Python package.

from . import dashboard
from . import mentors
from . import notifications
from . import realtime
from . import requests
from . import sessions

__all__ = [
    "requests",
    "sessions",
    "mentors",
    "dashboard",
    "notifications",
    "realtime",
]
