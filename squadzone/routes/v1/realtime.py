# squadzone/routes/v1/realtime.py
"""
Realtime conversation socket.

Protocol (JSON text frames):
    client → {"event": "join_conv", "convId": 12}
    server → {"event": "joined", "conversation_id": 12}
    client → {"event": "leave_conv", "convId": 12}
    server → {"event": "left", "conversation_id": 12}
    server → {"event": "conv_message", "data": {...message...}}
    server → {"event": "error", "error": "...", "code": "FORBIDDEN"}

The handshake must carry a session (cookie, Bearer header or ``?token=``);
otherwise the socket is closed with code 4401 before being accepted.
"""

import asyncio
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ...api.dependencies.auth import resolve_user_id
from ...core.concurrency import run_blocking
from ...core.exceptions import DomainException, RepositoryException
from ...database import get_session_factory
from ...services.conversation_service import ConversationService, coerce_id
from ...services.messaging.channel_subscriptions import ChannelSubscriptions
from ...services.messaging.events import (
    EventType,
    build_error_event,
    build_joined_event,
    build_left_event,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime-v1"])

WS_CLOSE_UNAUTHENTICATED = 4401


def _authorize_join(factory: sessionmaker, conversation_id: int, user_id: int) -> None:
    """Participant check on a short-lived DB session (sockets do not hold one)."""
    db = factory()
    try:
        ConversationService(db).require_participant(conversation_id, user_id)
    finally:
        db.close()


@router.websocket("/ws")
async def conversation_socket(
    websocket: WebSocket,
    session_factory: sessionmaker = Depends(get_session_factory),
) -> None:
    user_id = await resolve_user_id(websocket, allow_query=True)
    if user_id is None:
        logger.info("[WS] Rejecting unauthenticated socket")
        await websocket.close(code=WS_CLOSE_UNAUTHENTICATED)
        return

    await websocket.accept()
    logger.info("[WS] User %s connected", user_id)

    # Forwarder tasks and this loop both write to the socket
    send_lock = asyncio.Lock()

    async def send_json(payload: Dict[str, Any]) -> None:
        async with send_lock:
            await websocket.send_json(payload)

    subscriptions = ChannelSubscriptions(send_json, label=f"user:{user_id}")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await send_json(build_error_event("invalid JSON frame", "INVALID_ARGUMENT"))
                continue
            if not isinstance(frame, dict):
                await send_json(build_error_event("frame must be an object", "INVALID_ARGUMENT"))
                continue

            event = frame.get("event")
            try:
                if event == EventType.JOIN_CONV.value:
                    conversation_id = coerce_id(frame.get("convId"), field="convId")
                    await run_blocking(_authorize_join, session_factory, conversation_id, user_id)
                    await subscriptions.join(conversation_id)
                    logger.debug("[WS] User %s joined conversation %s", user_id, conversation_id)
                    await send_json(build_joined_event(conversation_id))
                elif event == EventType.LEAVE_CONV.value:
                    conversation_id = coerce_id(frame.get("convId"), field="convId")
                    await subscriptions.leave(conversation_id)
                    await send_json(build_left_event(conversation_id))
                else:
                    await send_json(
                        build_error_event(f"unknown event: {event!r}", "INVALID_ARGUMENT")
                    )
            except DomainException as exc:
                await send_json(build_error_event(exc.message, exc.code))
            except WebSocketDisconnect:
                raise
            except (RepositoryException, SQLAlchemyError) as exc:
                logger.error(
                    "[WS] Storage failure handling %r for user %s: %s", event, user_id, exc
                )
                await send_json(build_error_event("storage failure", "STORAGE_FAILURE"))
            except Exception as exc:
                # Subscribe failures and other unexpected errors keep the socket open
                logger.exception("[WS] Failed handling %r for user %s: %s", event, user_id, exc)
                await send_json(build_error_event("internal error", "STORAGE_FAILURE"))
    except WebSocketDisconnect:
        logger.info("[WS] User %s disconnected", user_id)
    finally:
        await subscriptions.close()
