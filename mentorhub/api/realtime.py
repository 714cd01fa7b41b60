"""
WebSocket event stream.

Routes: WS /ws/events?token=<jwt>

Server sends every event published to the caller's ``user:<id>`` and
``role:<role>`` channels as ``{"type", "payload", "sent_at"}``.

Client may send:
    {"type": "meeting:message", "payload": {"toUserId": 7, "text": "...", "link": "..."}}
    {"type": "ping"}
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from mentorhub.database import SessionLocal
from mentorhub.schemas import Actor, EventType
from mentorhub.services.event_channel import EventChannel, Subscription, get_event_channel
from mentorhub.utils.security import CredentialsError, resolve_actor
from mentorhub.utils.timeutils import isoformat_utc, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


def _authenticate(token: str) -> Actor:
    db = SessionLocal()
    try:
        return resolve_actor(db, token)
    finally:
        db.close()


def relay_frame(
    events: EventChannel, actor: Actor, frame: Any, *, clock=utcnow
) -> Optional[Dict[str, Any]]:
    """
    Handle one client frame. Returns a reply for the sender, or None.

    ``meeting:message`` is forwarded to ``payload.toUserId`` as
    ``{fromUserId, text, link, at}``; other client keys are not relayed.
    """
    if not isinstance(frame, dict):
        return {"type": "error", "payload": {"code": "INVALID_FRAME"}}

    frame_type = frame.get("type")
    if frame_type == "ping":
        return {"type": "pong", "payload": {}}

    if frame_type == EventType.MEETING_MESSAGE:
        payload = frame.get("payload") or {}
        if not isinstance(payload, dict):
            payload = {}
        try:
            to_user_id = int(payload.get("toUserId"))
        except (TypeError, ValueError):
            return {"type": "error", "payload": {"code": "MISSING_RECIPIENT"}}
        message = {
            "fromUserId": actor.id,
            "text": payload.get("text") or "",
            "link": payload.get("link") or None,
            "at": isoformat_utc(clock()),
        }
        events.publish(to_user_id, EventType.MEETING_MESSAGE, message)
        return None

    return {"type": "error", "payload": {"code": "UNKNOWN_EVENT", "event": frame_type}}


async def _pump_events(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        event = await subscription.get()
        await websocket.send_json(event.model_dump(mode="json"))


async def _pump_frames(websocket: WebSocket, events: EventChannel, actor: Actor) -> None:
    while True:
        frame = await websocket.receive_json()
        reply = relay_frame(events, actor, frame)
        if reply is not None:
            await websocket.send_json(reply)


@router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket, token: str = Query(...)) -> None:
    try:
        actor = await run_in_threadpool(_authenticate, token)
    except CredentialsError as exc:
        logger.info("Rejected realtime connection: %s", exc)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    events = get_event_channel()
    subscription = events.subscribe(actor.id, actor.role, loop=asyncio.get_running_loop())
    logger.info("Realtime connection opened (user_id=%s)", actor.id)

    tasks = [
        asyncio.create_task(_pump_events(websocket, subscription)),
        asyncio.create_task(_pump_frames(websocket, events, actor)),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Realtime connection for user_id=%s failed: %s", actor.id, exc)
    finally:
        for task in tasks:
            task.cancel()
        events.unsubscribe(subscription)
        logger.info(
            "Realtime connection closed (user_id=%s, dropped=%d)",
            actor.id,
            subscription.dropped,
        )
