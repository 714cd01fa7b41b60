"""Shared fixtures: in-memory store, user factory and a recording event channel."""

from pathlib import Path
import sys

# Ensure project root is on sys.path so `import mentorhub` works without install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mentorhub import models
from mentorhub.database import Base
from mentorhub.models.user import UserRole

FIXED_NOW = datetime(2030, 1, 7, 9, 0, 0)


class RecordingChannel:
    """Stands in for EventChannel; keeps every publish in order."""

    def __init__(self):
        self.published = []
        self.role_published = []

    def publish(self, user_id, event_type, payload):
        self.published.append((user_id, event_type, payload))
        return 1

    def publish_to_role(self, role, event_type, payload):
        self.role_published.append((role, event_type, payload))
        return 1

    def of_type(self, event_type):
        return [(uid, payload) for uid, etype, payload in self.published if etype == event_type]


class FailingChannel(RecordingChannel):
    def publish(self, user_id, event_type, payload):
        raise RuntimeError("channel down")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def make_user(db):
    def _make(name, role=UserRole.MENTEE, hourly_rate=None, is_active=True):
        user = models.User(
            name=name.title(),
            email=f"{name.lower()}@mentorhub.io",
            role=role,
            hourly_rate=hourly_rate,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_relationship(db):
    def _make(mentor, mentee, status="active"):
        rel = models.MentorMenteeRelationship(
            mentor_id=mentor.id, mentee_id=mentee.id, status=status
        )
        db.add(rel)
        db.commit()
        db.refresh(rel)
        return rel

    return _make
