"""Tests for realtime event shapes and best-effort publishing."""

import json
from unittest.mock import AsyncMock

import pytest

from squadzone.services.messaging import events, publisher


class TestEventBuilders:
    def test_conv_message_frame(self):
        message = {"id": 1, "text": "hi"}
        assert events.build_conv_message_event(message) == {
            "event": "conv_message",
            "data": message,
        }

    def test_control_frames(self):
        assert events.build_joined_event(4) == {"event": "joined", "conversation_id": 4}
        assert events.build_left_event(4) == {"event": "left", "conversation_id": 4}
        assert events.build_error_event("nope", "FORBIDDEN") == {
            "event": "error",
            "error": "nope",
            "code": "FORBIDDEN",
        }


class TestPublisher:
    @pytest.mark.asyncio
    async def test_publishes_to_conversation_channel(self, monkeypatch):
        broadcast = AsyncMock()
        monkeypatch.setattr(publisher, "get_broadcast", lambda: broadcast)

        ok = await publisher.publish_conversation_message(12, {"id": 3, "text": "hi"})

        assert ok is True
        broadcast.publish.assert_awaited_once()
        kwargs = broadcast.publish.await_args.kwargs
        assert kwargs["channel"] == "conversation:12"
        assert json.loads(kwargs["message"]) == {
            "event": "conv_message",
            "data": {"id": 3, "text": "hi"},
        }

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self, monkeypatch):
        broadcast = AsyncMock()
        broadcast.publish.side_effect = ConnectionError("redis down")
        monkeypatch.setattr(publisher, "get_broadcast", lambda: broadcast)

        assert await publisher.publish_conversation_message(12, {"id": 3}) is False

    @pytest.mark.asyncio
    async def test_publish_without_broadcaster_is_swallowed(self, monkeypatch):
        def _not_ready():
            raise RuntimeError("Broadcast not initialized")

        monkeypatch.setattr(publisher, "get_broadcast", _not_ready)

        assert await publisher.publish_conversation_message(12, {"id": 3}) is False
