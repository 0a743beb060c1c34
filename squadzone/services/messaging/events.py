# squadzone/services/messaging/events.py
"""
Realtime event type definitions and builders.

Server → client frames look like:
{
    "event": str,   # Event type identifier
    "data": dict    # Event-specific payload (conv_message only)
}
Control replies (joined/left/error) carry their fields at the top level.
"""

from enum import Enum
from typing import Any, Dict


class EventType(str, Enum):
    """Socket event names, both directions."""

    # client → server
    JOIN_CONV = "join_conv"
    LEAVE_CONV = "leave_conv"

    # server → client
    CONV_MESSAGE = "conv_message"
    JOINED = "joined"
    LEFT = "left"
    ERROR = "error"


def build_event(event_type: EventType, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"event": event_type.value, "data": data}


def build_conv_message_event(message: Dict[str, Any]) -> Dict[str, Any]:
    """Build the frame delivered to every socket joined to the message's conversation."""
    return build_event(EventType.CONV_MESSAGE, message)


def build_joined_event(conversation_id: int) -> Dict[str, Any]:
    return {"event": EventType.JOINED.value, "conversation_id": conversation_id}


def build_left_event(conversation_id: int) -> Dict[str, Any]:
    return {"event": EventType.LEFT.value, "conversation_id": conversation_id}


def build_error_event(error: str, code: str) -> Dict[str, Any]:
    return {"event": EventType.ERROR.value, "error": error, "code": code}
