# squadzone/services/message_service.py
"""
Message Service.

Appends messages to a conversation and reads the transcript back. The message
insert and the conversation's last_updated bump are one unit of work: either
both are committed or neither is.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException, ValidationException
from ..models.message import Message
from ..models.types import utcnow
from ..repositories.conversation_repository import ConversationRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.message_repository import MessageRepository
from .base import BaseService
from .conversation_service import ConversationService

logger = logging.getLogger(__name__)


def serialize_message(message: Message) -> Dict[str, Any]:
    """Message enriched with its author's display name and avatar."""
    sender = message.sender
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "text": message.text,
        "created": message.created,
        "sender_name": sender.name if sender is not None else None,
        "sender_avatar": (sender.avatar or settings.default_avatar) if sender is not None else None,
    }


class MessageService(BaseService):
    """Append-only message store with participant checks."""

    def __init__(
        self,
        db: Session,
        conversation_service: Optional[ConversationService] = None,
        conversation_repository: Optional[ConversationRepository] = None,
        message_repository: Optional[MessageRepository] = None,
    ):
        super().__init__(db)
        self.conversation_repository = (
            conversation_repository or RepositoryFactory.create_conversation_repository(db)
        )
        self.message_repository = message_repository or RepositoryFactory.create_message_repository(
            db
        )
        self.conversation_service = conversation_service or ConversationService(
            db, conversation_repository=self.conversation_repository
        )

    @BaseService.measure_operation("send_message")
    def send_message(self, conversation_id: int, sender_id: int, text: Any = None) -> Dict[str, Any]:
        """
        Append a message and record the conversation's activity.

        Args:
            conversation_id: Target conversation
            sender_id: Authenticated caller, must be a participant
            text: Message body; None becomes the empty string

        Returns:
            The persisted message, enriched with sender name and avatar

        Raises:
            ValidationException: text is not a string
            NotFoundException: conversation does not exist
            ForbiddenException: sender is not a participant
        """
        if text is None:
            text = ""
        if not isinstance(text, str):
            raise ValidationException("text must be a string", details={"field": "text"})

        self.conversation_service.require_participant(conversation_id, sender_id)

        with self.transaction():
            created = utcnow()
            message = self.message_repository.create_message(
                conversation_id=conversation_id,
                sender_id=sender_id,
                text=text,
                created=created,
            )
            if self.conversation_repository.touch(conversation_id, created) is None:
                raise ServiceException(
                    "Conversation disappeared while appending",
                    details={"conversation_id": conversation_id},
                )

        self.logger.info(
            "Message appended",
            extra={
                "conversation_id": conversation_id,
                "sender_id": sender_id,
                "message_id": message.id,
            },
        )
        return serialize_message(message)

    @BaseService.measure_operation("list_messages")
    def list_messages(self, conversation_id: int, caller_id: int) -> List[Dict[str, Any]]:
        """Full transcript of a conversation, oldest first."""
        self.conversation_service.require_participant(conversation_id, caller_id)
        messages = self.message_repository.find_by_conversation(conversation_id)
        return [serialize_message(m) for m in messages]
