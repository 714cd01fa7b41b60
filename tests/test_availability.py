from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from mentorhub import models
from mentorhub.exceptions import PersistenceFailureError
from mentorhub.models.session import SessionStatus
from mentorhub.models.user import UserRole
from mentorhub.services import availability

T10 = datetime(2030, 1, 8, 10, 0)


def _session(db, mentor, mentee, start, duration=60, status=SessionStatus.UPCOMING):
    session = models.MentoringSession(
        mentor_id=mentor.id,
        mentee_id=mentee.id,
        title="Existing",
        scheduled_at=start,
        duration=duration,
        amount=50.0,
        status=status,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


@pytest.fixture
def pair(make_user):
    return make_user("mentor", UserRole.MENTOR), make_user("mentee")


def test_intervals_overlap_is_half_open():
    a_end = T10 + timedelta(hours=1)
    assert availability.intervals_overlap(T10, a_end, T10 + timedelta(minutes=30), a_end)
    assert not availability.intervals_overlap(T10, a_end, a_end, a_end + timedelta(hours=1))
    assert not availability.intervals_overlap(
        T10, a_end, T10 - timedelta(hours=1), T10
    )


def test_touching_session_does_not_conflict(db, pair):
    mentor, mentee = pair
    _session(db, mentor, mentee, T10)

    assert not availability.has_conflict(db, mentor.id, T10 + timedelta(hours=1), 60)
    assert not availability.has_conflict(db, mentee.id, T10 - timedelta(hours=1), 60)


def test_overlap_detected_for_either_role(db, pair):
    mentor, mentee = pair
    _session(db, mentor, mentee, T10)

    assert availability.has_conflict(db, mentor.id, T10 + timedelta(minutes=30), 60)
    assert availability.has_conflict(db, mentee.id, T10 - timedelta(minutes=30), 60)


def test_only_active_sessions_occupy_time(db, pair):
    mentor, mentee = pair
    _session(db, mentor, mentee, T10, status=SessionStatus.CANCELLED)
    _session(db, mentor, mentee, T10, status=SessionStatus.COMPLETED)
    assert not availability.has_conflict(db, mentor.id, T10, 60)

    _session(db, mentor, mentee, T10, status=SessionStatus.IN_PROGRESS)
    assert availability.has_conflict(db, mentor.id, T10, 60)


def test_excluded_session_is_ignored(db, pair):
    mentor, mentee = pair
    existing = _session(db, mentor, mentee, T10)

    assert availability.has_conflict(db, mentor.id, T10, 60)
    assert not availability.has_conflict(db, mentor.id, T10, 60, exclude_session_id=existing.id)


def test_check_availability_counts_conflicts(db, pair):
    mentor, mentee = pair
    _session(db, mentor, mentee, T10, duration=30)
    _session(db, mentor, mentee, T10 + timedelta(minutes=30), duration=30)

    result = availability.check_availability(db, mentor.id, T10, 90)
    assert result == {"available": False, "conflicts": 2}

    result = availability.check_availability(db, mentor.id, T10 + timedelta(hours=2), 60)
    assert result == {"available": True, "conflicts": 0}


def test_store_failure_is_not_reported_as_free(db, pair, monkeypatch):
    mentor, _ = pair

    def boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(availability.session_crud, "get_active_sessions_for_person", boom)

    with pytest.raises(PersistenceFailureError):
        availability.has_conflict(db, mentor.id, T10, 60)
