from typing import Optional

from pydantic import BaseModel, ConfigDict

# ======================
# TOKEN SCHEMAS
# ======================


class TokenData(BaseModel):
    user_id: Optional[int] = None
    role: Optional[str] = None


# ======================
# AUTHENTICATED ACTOR
# ======================


class Actor(BaseModel):
    """Caller identity resolved once at the boundary from the bearer token."""

    id: int
    role: str
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True)
