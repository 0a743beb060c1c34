"""
Realtime messaging fanout.

events                 Wire shapes pushed to sockets
publisher              Best-effort publish after a message is committed
channel_subscriptions  Per-socket join/leave of conversation channels
"""

from .channel_subscriptions import ChannelSubscriptions
from .events import EventType, build_conv_message_event, build_event
from .publisher import publish_conversation_message

__all__ = [
    "ChannelSubscriptions",
    "EventType",
    "build_conv_message_event",
    "build_event",
    "publish_conversation_message",
]
