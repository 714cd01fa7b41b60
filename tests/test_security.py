from datetime import timedelta

import pytest
from fastapi import HTTPException

from mentorhub.models.user import UserRole
from mentorhub.schemas import Actor
from mentorhub.utils.security import (
    CredentialsError,
    create_access_token,
    decode_access_token,
    get_current_actor,
    require_mentee,
    require_mentor,
    resolve_actor,
)


def test_token_roundtrip_carries_user_id_and_role():
    token = create_access_token({"sub": 42, "role": UserRole.MENTOR})

    data = decode_access_token(token)

    assert data.user_id == 42
    assert data.role == UserRole.MENTOR


def test_expired_or_garbage_tokens_are_rejected():
    expired = create_access_token({"sub": 1}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(CredentialsError):
        decode_access_token(expired)
    with pytest.raises(CredentialsError):
        decode_access_token("not-a-jwt")
    with pytest.raises(CredentialsError):
        decode_access_token(create_access_token({"role": "mentor"}))


def test_resolve_actor_uses_stored_role(db, make_user):
    mentor = make_user("mentor", UserRole.MENTOR)
    # role claim is ignored in favour of the stored role
    token = create_access_token({"sub": mentor.id, "role": UserRole.ADMIN})

    actor = resolve_actor(db, token)

    assert actor == Actor(id=mentor.id, role=UserRole.MENTOR, name="Mentor")


def test_inactive_user_cannot_authenticate(db, make_user):
    ghost = make_user("ghost", is_active=False)
    token = create_access_token({"sub": ghost.id})

    with pytest.raises(HTTPException) as exc:
        get_current_actor(token=token, db=db)
    assert exc.value.status_code == 401


def test_role_guards():
    mentor = Actor(id=1, role=UserRole.MENTOR)
    mentee = Actor(id=2, role=UserRole.MENTEE)

    assert require_mentor(mentor) is mentor
    assert require_mentee(mentee) is mentee
    with pytest.raises(HTTPException) as exc:
        require_mentor(mentee)
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException):
        require_mentee(mentor)
