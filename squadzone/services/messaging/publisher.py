# squadzone/services/messaging/publisher.py
"""
High-level publishing for conversation events.

Publishing is the second, decoupled half of a send: it runs only after the
message transaction committed, and it is best-effort. A failure here is logged
and counted but never reaches the HTTP caller, who already has a durable
message. Sockets that miss an event re-read the transcript.
"""

import json
import logging
from typing import Any, Dict

from ...core.broadcast import conversation_channel, get_broadcast
from ...monitoring.prometheus_metrics import prometheus_metrics
from .events import EventType, build_conv_message_event

logger = logging.getLogger(__name__)


async def publish_conversation_message(conversation_id: int, message: Dict[str, Any]) -> bool:
    """
    Publish a persisted message to every socket joined to its conversation.

    Args:
        conversation_id: Conversation the message belongs to
        message: Serialized (author-enriched) message

    Returns:
        True if handed to the broadcaster, False if publishing failed
    """
    channel = conversation_channel(conversation_id)
    event = build_conv_message_event(message)
    try:
        await get_broadcast().publish(channel=channel, message=json.dumps(event))
    except Exception as e:
        logger.error(
            "[PUBLISHER] Failed to publish message %s to %s: %s",
            message.get("id"),
            channel,
            e,
            exc_info=True,
        )
        prometheus_metrics.record_publish(EventType.CONV_MESSAGE.value, "error")
        return False

    logger.debug("[PUBLISHER] Published message %s to %s", message.get("id"), channel)
    prometheus_metrics.record_publish(EventType.CONV_MESSAGE.value, "success")
    return True
