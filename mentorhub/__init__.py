"""MentorHub: mentoring request, relationship and session scheduling core."""

__version__ = "0.1.0"
