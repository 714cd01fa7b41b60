import asyncio

from mentorhub.api.realtime import relay_frame
from mentorhub.schemas import Actor, EventType
from mentorhub.services.event_channel import EventChannel, role_channel, user_channel

from conftest import FIXED_NOW


def test_publish_reaches_every_connection_of_the_user():
    channel = EventChannel(queue_size=10)
    first = channel.subscribe(1, "mentor")
    second = channel.subscribe(1)
    stranger = channel.subscribe(2)

    delivered = channel.publish(1, EventType.REQUEST_NEW, {"requestId": 9})

    assert delivered == 2
    assert [e.payload for e in first.drain()] == [{"requestId": 9}]
    assert [e.type for e in second.drain()] == [EventType.REQUEST_NEW]
    assert stranger.drain() == []


def test_role_channel_fan_out():
    channel = EventChannel(queue_size=10)
    mentor = channel.subscribe(1, "mentor")
    mentee = channel.subscribe(2, "mentee")

    assert channel.publish_to_role("mentor", "announcement", {"text": "hi"}) == 1
    assert len(mentor.drain()) == 1
    assert mentee.drain() == []


def test_full_queue_drops_and_counts():
    channel = EventChannel(queue_size=1)
    sub = channel.subscribe(5)

    channel.publish(5, "a", {})
    channel.publish(5, "b", {})

    assert [e.type for e in sub.drain()] == ["a"]
    assert sub.dropped == 1


def test_unsubscribe_removes_every_channel():
    channel = EventChannel(queue_size=10)
    sub = channel.subscribe(3, "mentee")
    assert channel.subscriber_count(user_channel(3)) == 1
    assert channel.subscriber_count(role_channel("mentee")) == 1

    channel.unsubscribe(sub)

    assert channel.subscriber_count(user_channel(3)) == 0
    assert channel.subscriber_count(role_channel("mentee")) == 0
    assert channel.publish(3, "x", {}) == 0


def test_closed_loop_subscription_does_not_block_other_connections():
    channel = EventChannel(queue_size=10)
    dead_loop = asyncio.new_event_loop()
    dead_loop.close()
    stale = channel.subscribe(4, loop=dead_loop)
    live = channel.subscribe(4)

    assert channel.publish(4, EventType.SESSION_BOOKED, {"sessionId": 1}) == 1

    assert [e.payload for e in live.drain()] == [{"sessionId": 1}]
    assert channel.subscriber_count(user_channel(4)) == 1
    assert stale.drain() == []


def test_publish_from_worker_thread_lands_on_subscriber_loop():
    channel = EventChannel(queue_size=10)

    async def scenario():
        sub = channel.subscribe(7, loop=asyncio.get_running_loop())
        await asyncio.to_thread(channel.publish, 7, EventType.MEETING_START, {"requestId": 1})
        return await asyncio.wait_for(sub.get(), timeout=1)

    event = asyncio.run(scenario())
    assert event.type == EventType.MEETING_START
    assert event.payload == {"requestId": 1}


def test_meeting_message_is_relayed_to_addressee():
    channel = EventChannel(queue_size=10)
    inbox = channel.subscribe(2)
    sender = Actor(id=1, role="mentor")

    reply = relay_frame(
        channel,
        sender,
        {
            "type": EventType.MEETING_MESSAGE,
            "payload": {"toUserId": 2, "text": "joining", "role": "admin"},
        },
        clock=lambda: FIXED_NOW,
    )

    assert reply is None
    [event] = inbox.drain()
    assert event.type == EventType.MEETING_MESSAGE
    assert event.payload == {
        "fromUserId": 1,
        "text": "joining",
        "link": None,
        "at": "2030-01-07T09:00:00Z",
    }


def test_relay_rejects_bad_frames():
    channel = EventChannel(queue_size=10)
    actor = Actor(id=1, role="mentee")

    assert relay_frame(channel, actor, {"type": "ping"})["type"] == "pong"
    assert relay_frame(channel, actor, ["nope"])["payload"]["code"] == "INVALID_FRAME"
    missing = relay_frame(channel, actor, {"type": EventType.MEETING_MESSAGE, "payload": {}})
    assert missing["payload"]["code"] == "MISSING_RECIPIENT"
    assert relay_frame(channel, actor, {"type": "hack"})["payload"]["code"] == "UNKNOWN_EVENT"
