from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from mentorhub import models, schemas
from mentorhub.config import settings
from mentorhub.database import get_db
from mentorhub.models.user import UserRole


# ==========================
# AUTH CONFIG
# ==========================

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


class CredentialsError(Exception):
    """Token missing, malformed, expired or pointing at an unknown user."""


# ==========================
# JWT TOKEN
# ==========================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_access_token(token: str) -> schemas.TokenData:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError as exc:
        raise CredentialsError(str(exc)) from exc

    subject = payload.get("sub")
    if subject is None:
        raise CredentialsError("Token has no subject")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise CredentialsError("Token subject is not a user id") from exc

    return schemas.TokenData(user_id=user_id, role=payload.get("role"))


# ==========================
# AUTH HELPERS
# ==========================

def resolve_actor(db: Session, token: str) -> schemas.Actor:
    """Bearer token -> Actor, using the stored role rather than the claim."""
    token_data = decode_access_token(token)
    user = db.query(models.User).filter(
        models.User.id == token_data.user_id,
        models.User.is_active.is_(True),
    ).first()
    if user is None:
        raise CredentialsError("Unknown user")
    return schemas.Actor(id=user.id, role=user.role, name=user.name)


def get_current_actor(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> schemas.Actor:
    try:
        return resolve_actor(db, token)
    except CredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_mentor(actor: schemas.Actor = Depends(get_current_actor)) -> schemas.Actor:
    if actor.role != UserRole.MENTOR:
        raise HTTPException(status_code=403, detail="Mentor access required")
    return actor


def require_mentee(actor: schemas.Actor = Depends(get_current_actor)) -> schemas.Actor:
    if actor.role != UserRole.MENTEE:
        raise HTTPException(status_code=403, detail="Mentee access required")
    return actor
