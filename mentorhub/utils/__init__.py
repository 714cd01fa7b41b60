__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_actor",
    "require_mentor",
    "require_mentee",
    "utcnow",
    "to_utc_naive",
    "isoformat_utc",
]


def __getattr__(name):
    if name in {
        "create_access_token",
        "decode_access_token",
        "get_current_actor",
        "require_mentor",
        "require_mentee",
    }:
        from . import security as _security
        return getattr(_security, name)
    if name in {"utcnow", "to_utc_naive", "isoformat_utc"}:
        from . import timeutils as _timeutils
        return getattr(_timeutils, name)
    raise AttributeError(f"module 'mentorhub.utils' has no attribute '{name}'")
