from __future__ import annotations

from mentorhub.services import notification_service


def test_notification_service_crud_flow(db, make_user):
    user = make_user("notify")
    notification_service.create_notification(
        db,
        recipient_id=user.id,
        actor_id=None,
        event_type="request_received",
        title="New mentoring request",
        message="Requested",
    )
    notification_service.create_notification(
        db,
        recipient_id=user.id,
        actor_id=None,
        event_type="request_accepted",
        title="Mentoring request accepted",
        message="Accepted",
        data={"relationship_id": 3},
    )
    db.commit()

    unread = notification_service.list_user_notifications(
        db,
        user_id=user.id,
        unread_only=True,
        limit=50,
    )
    assert len(unread) == 2
    assert notification_service.get_unread_count(db, user_id=user.id) == 2

    one = notification_service.mark_notification_read(
        db,
        user_id=user.id,
        notification_id=unread[0].id,
    )
    assert one is not None
    assert one.is_read is True
    assert notification_service.get_unread_count(db, user_id=user.id) == 1

    updated = notification_service.mark_all_notifications_read(db, user_id=user.id)
    assert updated == 1
    assert notification_service.get_unread_count(db, user_id=user.id) == 0


def test_mark_read_is_scoped_to_recipient(db, make_user):
    owner = make_user("owner")
    other = make_user("other")
    notification = notification_service.create_notification(
        db,
        recipient_id=owner.id,
        actor_id=other.id,
        event_type="session_booked",
        title="New session booked",
        message="Booked",
    )
    db.commit()

    assert notification_service.mark_notification_read(
        db, user_id=other.id, notification_id=notification.id
    ) is None
    assert notification_service.get_unread_count(db, user_id=owner.id) == 1


def test_failed_notification_write_does_not_raise(db, make_user, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from mentorhub.services.base import BaseService

    user = make_user("quiet")

    def boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(notification_service, "create_notification", boom)

    BaseService(db)._notify(
        recipient_id=user.id,
        actor_id=None,
        event_type="session_started",
        title="Session started",
        message="Started",
    )

    assert notification_service.get_unread_count(db, user_id=user.id) == 0
