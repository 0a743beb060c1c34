# squadzone/repositories/message_repository.py
"""
Message Repository.

Sole writer of message rows. Messages are appended and read back in transcript
order; they are never updated or deleted here.
"""

from datetime import datetime
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.message import Message
from ..models.types import utcnow
from .base_repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entity operations."""

    def __init__(self, db: Session):
        super().__init__(db, Message)

    def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        text: str,
        created: Optional[datetime] = None,
    ) -> Message:
        """
        Append a message to a conversation.

        Args:
            conversation_id: The conversation ID
            sender_id: Author of the message
            text: Message body (may be empty)
            created: Creation timestamp (defaults to now)

        Returns:
            The flushed message with its id assigned
        """
        return self.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            text=text,
            created=created or utcnow(),
        )

    def find_by_conversation(self, conversation_id: int) -> List[Message]:
        """
        Return the full transcript of a conversation.

        Ordered by created ascending with id as tie-breaker, so equal
        timestamps still come back in append order.
        """
        try:
            return cast(
                List[Message],
                self.db.query(Message)
                .filter(Message.conversation_id == conversation_id)
                .order_by(Message.created.asc(), Message.id.asc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading messages for conversation {conversation_id}: {str(e)}")
            raise RepositoryException(f"Failed to load messages: {str(e)}")
