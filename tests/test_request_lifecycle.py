from datetime import timedelta

import pytest

from mentorhub import models
from mentorhub.exceptions import DuplicateRequestError, InvalidStateError, NotFoundError
from mentorhub.models.relationship import RelationshipStatus
from mentorhub.models.request import RequestStatus
from mentorhub.models.scheduled_event import ScheduledEventStatus
from mentorhub.models.user import UserRole
from mentorhub.schemas.realtime import EventType
from mentorhub.services import request_service
from mentorhub.services.request_service import RequestLifecycleManager
from mentorhub.services.scheduler import EventScheduler

from conftest import FIXED_NOW

LINK = "https://meet.google.com/abc-defg-hij"


@pytest.fixture
def manager(db, channel, clock):
    return RequestLifecycleManager(db, channel, link_generator=lambda: LINK, clock=clock)


@pytest.fixture
def people(make_user):
    return make_user("mentor", UserRole.MENTOR, hourly_rate=80), make_user("mentee")


def _relationships(db, mentor, mentee):
    return db.query(models.MentorMenteeRelationship).filter_by(
        mentor_id=mentor.id, mentee_id=mentee.id
    ).all()


# ======================
# SUBMIT
# ======================
def test_submit_creates_pending_request_and_notifies_mentor(db, manager, channel, people):
    mentor, mentee = people

    request_id = manager.submit_request(mentee.id, mentor.id, message="Hi", goals="Learn SQL")

    request = db.get(models.MentoringRequest, request_id)
    assert request.status == RequestStatus.PENDING
    assert request.goals == "Learn SQL"

    [(recipient, payload)] = channel.of_type(EventType.REQUEST_NEW)
    assert recipient == mentor.id
    assert payload["requestId"] == request_id
    assert payload["menteeId"] == mentee.id

    notification = db.query(models.Notification).filter_by(recipient_id=mentor.id).one()
    assert notification.request_id == request_id
    assert notification.event_type == "request_received"


def test_submit_to_unknown_or_non_mentor_is_not_found(manager, make_user):
    mentee = make_user("mentee")
    other = make_user("other")

    with pytest.raises(NotFoundError):
        manager.submit_request(mentee.id, 9999)
    with pytest.raises(NotFoundError):
        manager.submit_request(mentee.id, other.id)


def test_second_active_request_for_pair_is_rejected(db, manager, channel, people):
    mentor, mentee = people
    manager.submit_request(mentee.id, mentor.id)

    with pytest.raises(DuplicateRequestError):
        manager.submit_request(mentee.id, mentor.id)

    assert db.query(models.MentoringRequest).count() == 1
    assert len(channel.of_type(EventType.REQUEST_NEW)) == 1


def test_unique_index_catches_request_missed_by_precheck(db, manager, people, monkeypatch):
    mentor, mentee = people
    manager.submit_request(mentee.id, mentor.id)

    # simulate a concurrent submit that read before the first insert committed
    monkeypatch.setattr(
        request_service.request_crud, "get_active_request_for_pair", lambda *a, **k: None
    )
    with pytest.raises(DuplicateRequestError):
        manager.submit_request(mentee.id, mentor.id)

    assert db.query(models.MentoringRequest).count() == 1


def test_new_request_allowed_after_decline(manager, people):
    mentor, mentee = people
    first = manager.submit_request(mentee.id, mentor.id)
    manager.decline_request(mentor.id, first, reason="Busy")

    second = manager.submit_request(mentee.id, mentor.id)
    assert second != first


def test_accepted_request_still_blocks_a_new_one(manager, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)
    manager.accept_request(mentor.id, request_id)

    with pytest.raises(DuplicateRequestError):
        manager.submit_request(mentee.id, mentor.id)


# ======================
# ACCEPT
# ======================
def test_accept_with_default_delay_schedules_meeting_start(
    db, manager, channel, people, session_factory
):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)

    result = manager.accept_request(mentor.id, request_id)

    assert result.request.status == RequestStatus.ACCEPTED
    assert result.request.decided_at == FIXED_NOW
    assert result.relationship.status == RelationshipStatus.ACTIVE
    assert result.meeting_at == FIXED_NOW + timedelta(minutes=5)
    assert result.meeting_link == LINK

    [(recipient, decision)] = channel.of_type(EventType.REQUEST_DECISION)
    assert recipient == mentee.id
    assert decision["status"] == RequestStatus.ACCEPTED
    assert decision["mentorId"] == mentor.id
    assert decision["decidedAt"] == FIXED_NOW.isoformat() + "Z"

    # nothing fires before the due time
    assert channel.of_type(EventType.MEETING_START) == []
    event = db.query(models.ScheduledEvent).one()
    assert event.due_at == FIXED_NOW + timedelta(minutes=5)
    assert sorted(event.recipients) == sorted([mentor.id, mentee.id])

    sweeper = EventScheduler(channel, session_factory, poll_seconds=1)
    assert sweeper.run_due(now=FIXED_NOW + timedelta(minutes=4)) == 0
    assert sweeper.run_due(now=FIXED_NOW + timedelta(minutes=5)) == 1

    starts = channel.of_type(EventType.MEETING_START)
    assert sorted(uid for uid, _ in starts) == sorted([mentor.id, mentee.id])
    payload = starts[0][1]
    assert payload == {
        "requestId": request_id,
        "mentorId": mentor.id,
        "menteeId": mentee.id,
        "scheduledAt": (FIXED_NOW + timedelta(minutes=5)).isoformat() + "Z",
        "meetLink": LINK,
    }
    db.expire_all()
    assert db.get(models.ScheduledEvent, event.id).status == ScheduledEventStatus.DELIVERED


def test_accept_uses_supplied_meeting_time_and_link(db, manager, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)
    meeting_at = FIXED_NOW + timedelta(days=2)

    result = manager.accept_request(
        mentor.id, request_id, meeting_time=meeting_at, meeting_link="https://zoom.us/j/1"
    )

    assert result.meeting_at == meeting_at
    event = db.query(models.ScheduledEvent).one()
    assert event.due_at == meeting_at
    assert event.payload["meetLink"] == "https://zoom.us/j/1"


def test_meeting_time_in_the_past_is_clamped_to_now(db, manager, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)

    result = manager.accept_request(
        mentor.id, request_id, meeting_time=FIXED_NOW - timedelta(hours=3)
    )

    assert result.meeting_at == FIXED_NOW


def test_accept_reuses_existing_relationship(db, manager, people, make_relationship):
    mentor, mentee = people
    make_relationship(mentor, mentee)
    request_id = manager.submit_request(mentee.id, mentor.id)

    manager.accept_request(mentor.id, request_id)

    assert len(_relationships(db, mentor, mentee)) == 1


def test_accept_reactivates_inactive_relationship(db, manager, people, make_relationship):
    mentor, mentee = people
    rel = make_relationship(mentor, mentee, status=RelationshipStatus.INACTIVE)
    request_id = manager.submit_request(mentee.id, mentor.id)

    result = manager.accept_request(mentor.id, request_id)

    assert result.relationship.id == rel.id
    assert [r.status for r in _relationships(db, mentor, mentee)] == [RelationshipStatus.ACTIVE]


def test_accept_by_other_mentor_is_not_found(manager, people, make_user):
    mentor, mentee = people
    stranger = make_user("stranger", UserRole.MENTOR)
    request_id = manager.submit_request(mentee.id, mentor.id)

    with pytest.raises(NotFoundError):
        manager.accept_request(stranger.id, request_id)
    with pytest.raises(NotFoundError):
        manager.accept_request(mentor.id, 4242)


def test_reaccepting_is_invalid_state(manager, channel, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)
    manager.accept_request(mentor.id, request_id)

    with pytest.raises(InvalidStateError):
        manager.accept_request(mentor.id, request_id)
    assert len(channel.of_type(EventType.REQUEST_DECISION)) == 1


def test_accept_that_loses_the_race_changes_nothing(db, manager, channel, people, monkeypatch):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)

    # a concurrent decline flipped the row between our read and our update
    monkeypatch.setattr(request_service.request_crud, "transition_request", lambda *a, **k: 0)

    with pytest.raises(InvalidStateError):
        manager.accept_request(mentor.id, request_id)

    assert _relationships(db, mentor, mentee) == []
    assert db.query(models.ScheduledEvent).count() == 0
    assert channel.of_type(EventType.REQUEST_DECISION) == []


def test_accept_then_decline_leaves_one_terminal_state(db, manager, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)

    manager.accept_request(mentor.id, request_id)
    with pytest.raises(InvalidStateError):
        manager.decline_request(mentor.id, request_id)

    db.expire_all()
    assert db.get(models.MentoringRequest, request_id).status == RequestStatus.ACCEPTED


# ======================
# DECLINE / CANCEL
# ======================
def test_decline_stores_reason_and_notifies_mentee(db, manager, channel, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)

    request = manager.decline_request(mentor.id, request_id, reason="Fully booked")

    assert request.status == RequestStatus.DECLINED
    assert request.decline_reason == "Fully booked"
    [(recipient, payload)] = channel.of_type(EventType.REQUEST_DECISION)
    assert recipient == mentee.id
    assert payload["status"] == RequestStatus.DECLINED
    assert payload["reason"] == "Fully booked"
    assert _relationships(db, mentor, mentee) == []


def test_mentee_can_cancel_only_own_pending_request(db, manager, channel, people, make_user):
    mentor, mentee = people
    intruder = make_user("intruder")
    request_id = manager.submit_request(mentee.id, mentor.id)

    with pytest.raises(NotFoundError):
        manager.cancel_request(intruder.id, request_id)

    request = manager.cancel_request(mentee.id, request_id)
    assert request.status == RequestStatus.CANCELLED
    [(recipient, _)] = channel.of_type(EventType.REQUEST_CANCELLED)
    assert recipient == mentor.id

    with pytest.raises(InvalidStateError):
        manager.cancel_request(mentee.id, request_id)


# ======================
# QUERIES
# ======================
def test_listing_pending_and_own_requests(manager, people, make_user):
    mentor, mentee = people
    other_mentee = make_user("second")
    first = manager.submit_request(mentee.id, mentor.id)
    second = manager.submit_request(other_mentee.id, mentor.id)
    manager.decline_request(mentor.id, second)

    pending = manager.list_pending_for_mentor(mentor.id)
    assert [r.id for r in pending] == [first]

    mine = manager.list_for_mentee(mentee.id)
    assert [r.id for r in mine] == [first]
    assert manager.list_for_mentee(other_mentee.id, status=RequestStatus.PENDING) == []


def test_list_relationships_for_both_sides(manager, people):
    mentor, mentee = people
    request_id = manager.submit_request(mentee.id, mentor.id)
    manager.accept_request(mentor.id, request_id)

    assert len(manager.list_relationships(mentor.id)) == 1
    assert len(manager.list_relationships(mentee.id)) == 1
