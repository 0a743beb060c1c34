# squadzone/core/broadcast.py
"""
Shared broadcast manager for realtime conversation fanout.

One Broadcaster instance per worker process. Every websocket that joins a
conversation subscribes to the ``conversation:<id>`` channel through this
instance, so N sockets share one backend connection.

- ``memory://`` keeps fanout inside the process (single worker, tests)
- ``redis://host:port`` fans out across workers through Redis PubSub

Messages flow: route publishes → Broadcaster → per-subscriber asyncio queues
→ the websocket forwarder task of each joined socket.
"""
import logging
from typing import Optional

from broadcaster import Broadcast

from .config import settings

logger = logging.getLogger(__name__)

# Single broadcast instance per worker process
_broadcast: Optional[Broadcast] = None


def conversation_channel(conversation_id: int) -> str:
    return f"conversation:{conversation_id}"


def get_broadcast() -> Broadcast:
    """
    Get the shared broadcast instance.

    Raises:
        RuntimeError: If broadcast is not initialized (call connect_broadcast first)
    """
    if _broadcast is None:
        raise RuntimeError("Broadcast not initialized. Call connect_broadcast() during startup.")
    return _broadcast


def is_broadcast_initialized() -> bool:
    """
    Check if the broadcast instance is initialized.

    Used by the health check.
    """
    return _broadcast is not None


async def connect_broadcast(url: Optional[str] = None) -> None:
    """
    Connect the shared Broadcaster.

    Call during application startup (in lifespan manager).
    """
    global _broadcast

    broadcast_url = url or settings.broadcast_url or "memory://"
    _broadcast = Broadcast(broadcast_url)
    await _broadcast.connect()
    logger.info("[BROADCAST] Connected fanout backend: %s", broadcast_url.split("@")[-1])


async def disconnect_broadcast() -> None:
    """
    Disconnect the shared Broadcaster.

    Call during application shutdown.
    """
    global _broadcast

    if _broadcast is not None:
        await _broadcast.disconnect()
        _broadcast = None
        logger.info("[BROADCAST] Disconnected")
