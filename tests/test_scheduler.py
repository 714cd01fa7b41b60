from datetime import timedelta

from mentorhub import models
from mentorhub.models.scheduled_event import ScheduledEventStatus
from mentorhub.schemas.realtime import EventType
from mentorhub.services.scheduler import EventScheduler, compute_due_at, schedule_event

from conftest import FIXED_NOW, FailingChannel, RecordingChannel


def test_compute_due_at_defaults_and_clamps():
    assert compute_due_at(None, now=FIXED_NOW) == FIXED_NOW + timedelta(minutes=5)
    assert compute_due_at(None, now=FIXED_NOW, default_delay_minutes=0) == FIXED_NOW
    assert compute_due_at(None, now=FIXED_NOW, default_delay_minutes=-3) == FIXED_NOW
    assert compute_due_at(FIXED_NOW - timedelta(days=1), now=FIXED_NOW) == FIXED_NOW

    later = FIXED_NOW + timedelta(hours=2)
    assert compute_due_at(later, now=FIXED_NOW) == later


def _enqueue(db, due_at, recipients=(1, 2)):
    event = schedule_event(
        db,
        event_type=EventType.MEETING_START,
        recipients=list(recipients),
        payload={"requestId": 1},
        due_at=due_at,
    )
    db.commit()
    return event.id


def test_run_due_publishes_only_due_events(db, channel, session_factory):
    due_id = _enqueue(db, FIXED_NOW)
    later_id = _enqueue(db, FIXED_NOW + timedelta(hours=1), recipients=(3,))

    sweeper = EventScheduler(channel, session_factory)
    assert sweeper.run_due(now=FIXED_NOW) == 1

    assert [uid for uid, _ in channel.of_type(EventType.MEETING_START)] == [1, 2]
    db.expire_all()
    assert db.get(models.ScheduledEvent, due_id).status == ScheduledEventStatus.DELIVERED
    assert db.get(models.ScheduledEvent, later_id).status == ScheduledEventStatus.QUEUED

    # delivered events are not sent twice
    assert sweeper.run_due(now=FIXED_NOW) == 0
    assert len(channel.published) == 2


def test_failed_publish_backs_off_then_gives_up(db, session_factory):
    event_id = _enqueue(db, FIXED_NOW)
    sweeper = EventScheduler(
        FailingChannel(), session_factory, max_attempts=2, backoff_base_seconds=10
    )

    assert sweeper.run_due(now=FIXED_NOW) == 0
    db.expire_all()
    event = db.get(models.ScheduledEvent, event_id)
    assert event.status == ScheduledEventStatus.QUEUED
    assert event.attempts == 1
    assert event.due_at == FIXED_NOW + timedelta(seconds=10)
    assert "channel down" in event.last_error

    # not due again until the backoff elapses
    assert sweeper.run_due(now=FIXED_NOW + timedelta(seconds=5)) == 0
    db.expire_all()
    assert db.get(models.ScheduledEvent, event_id).attempts == 1

    sweeper.run_due(now=FIXED_NOW + timedelta(seconds=10))
    db.expire_all()
    event = db.get(models.ScheduledEvent, event_id)
    assert event.status == ScheduledEventStatus.FAILED
    assert event.attempts == 2


class FlakyChannel(RecordingChannel):
    """Fails the first publish to each listed user, then recovers."""

    def __init__(self, flaky_user_ids):
        super().__init__()
        self.pending_failures = set(flaky_user_ids)

    def publish(self, user_id, event_type, payload):
        if user_id in self.pending_failures:
            self.pending_failures.discard(user_id)
            raise RuntimeError(f"user {user_id} unreachable")
        return super().publish(user_id, event_type, payload)


def test_retry_only_resends_to_recipients_that_failed(db, session_factory):
    event_id = _enqueue(db, FIXED_NOW, recipients=(1, 2))
    flaky = FlakyChannel({2})
    sweeper = EventScheduler(flaky, session_factory, max_attempts=3, backoff_base_seconds=10)

    assert sweeper.run_due(now=FIXED_NOW) == 0
    db.expire_all()
    event = db.get(models.ScheduledEvent, event_id)
    assert event.status == ScheduledEventStatus.QUEUED
    assert event.delivered_to == [1]

    assert sweeper.run_due(now=FIXED_NOW + timedelta(seconds=10)) == 1

    assert [uid for uid, _ in flaky.of_type(EventType.MEETING_START)] == [1, 2]
    db.expire_all()
    event = db.get(models.ScheduledEvent, event_id)
    assert event.status == ScheduledEventStatus.DELIVERED
    assert event.delivered_to == [1, 2]


def test_start_and_stop_worker_thread(channel, session_factory):
    sweeper = EventScheduler(channel, session_factory, poll_seconds=1)
    sweeper.start()
    try:
        assert sweeper._thread is not None and sweeper._thread.is_alive()
    finally:
        sweeper.stop(timeout=2)
    assert sweeper._thread is None
