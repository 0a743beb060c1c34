# squadzone/services/messaging/channel_subscriptions.py
"""
Per-socket conversation channel subscriptions.

Each websocket owns one ChannelSubscriptions. Joining a conversation starts a
reader task that subscribes to ``conversation:<id>`` on the shared Broadcaster
and forwards every event to the socket. join() returns only once the
subscription is live, so anything published after the "joined" reply is
delivered.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict

from ...core.broadcast import conversation_channel, get_broadcast

logger = logging.getLogger(__name__)

SendJson = Callable[[Dict[str, Any]], Awaitable[None]]


class ChannelSubscriptions:
    """Conversation channels one socket is joined to."""

    def __init__(self, send_json: SendJson, label: str = "") -> None:
        self._send_json = send_json
        self._label = label
        self._tasks: Dict[int, asyncio.Task[None]] = {}

    @property
    def joined(self) -> set[int]:
        return {cid for cid, task in self._tasks.items() if not task.done()}

    def is_joined(self, conversation_id: int) -> bool:
        return conversation_id in self.joined

    async def join(self, conversation_id: int) -> None:
        """Subscribe to a conversation channel. Joining twice is a no-op."""
        if self.is_joined(conversation_id):
            return

        ready = asyncio.Event()
        task = asyncio.create_task(
            self._forward(conversation_id, ready),
            name=f"ws-forward-{self._label}-{conversation_id}",
        )
        self._tasks[conversation_id] = task

        ready_wait = asyncio.create_task(ready.wait())
        done, _ = await asyncio.wait({ready_wait, task}, return_when=asyncio.FIRST_COMPLETED)
        if ready_wait not in done:
            ready_wait.cancel()
            self._tasks.pop(conversation_id, None)
            # Surface the subscribe failure to the caller
            task.result()
            raise RuntimeError(f"Subscription to conversation {conversation_id} ended early")

    async def leave(self, conversation_id: int) -> bool:
        """Unsubscribe. Returns False when the socket was not joined."""
        task = self._tasks.pop(conversation_id, None)
        if task is None:
            return False
        await self._cancel(task)
        return True

    async def close(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            await self._cancel(task)

    @staticmethod
    async def _cancel(task: "asyncio.Task[None]") -> None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("[WS] Forwarder ended with error during cancel: %s", e)

    async def _forward(self, conversation_id: int, ready: asyncio.Event) -> None:
        channel = conversation_channel(conversation_id)
        async with get_broadcast().subscribe(channel=channel) as subscriber:
            ready.set()
            logger.debug("[WS] %s subscribed to %s", self._label, channel)
            async for event in subscriber:
                try:
                    payload = json.loads(event.message)
                except json.JSONDecodeError as e:
                    logger.error("[WS] Dropping undecodable event on %s: %s", channel, e)
                    continue
                try:
                    await self._send_json(payload)
                except Exception as e:
                    # Socket is gone; stop forwarding for this channel
                    logger.info("[WS] Send failed for %s on %s: %s", self._label, channel, e)
                    return
