# squadzone/services/conversation_service.py
"""
Conversation Service for two-party messaging.

Handles business logic for the conversation directory including:
- Resolving the canonical conversation for a pair of users (get-or-create)
- Listing a user's conversations by recency with keyset pagination
- Guarding access so only participants can read, write or subscribe
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..models.conversation import Conversation
from ..models.types import MAX_ID
from ..models.user import User
from ..repositories.conversation_repository import ConversationRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)

CURSOR_SEPARATOR = "|"


def encode_cursor(conversation: Conversation) -> str:
    """Opaque-ish keyset cursor: ``<last_updated iso>|<id>``."""
    return f"{conversation.last_updated.isoformat()}{CURSOR_SEPARATOR}{conversation.id}"


def decode_cursor(cursor: str) -> Tuple[datetime, int]:
    """
    Parse a cursor produced by encode_cursor.

    Raises:
        ValidationException: If the cursor is malformed
    """
    raw_time, sep, raw_id = cursor.rpartition(CURSOR_SEPARATOR)
    if not sep:
        raise ValidationException("Invalid cursor", details={"cursor": cursor})
    try:
        timestamp = datetime.fromisoformat(raw_time)
        conversation_id = int(raw_id)
    except ValueError as exc:
        raise ValidationException("Invalid cursor", details={"cursor": cursor}) from exc
    if not 1 <= conversation_id <= MAX_ID:
        raise ValidationException("Invalid cursor", details={"cursor": cursor})
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp, conversation_id


def coerce_id(value: Any, field: str = "otherId") -> int:
    """
    Accept ints and integer strings in the primary-key range; reject everything else.

    bool is rejected explicitly since it is an int subclass.
    """
    if value is None:
        raise ValidationException(f"{field} is required", details={"field": field})
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be an integer", details={"field": field})
    parsed: Optional[int] = None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            pass
    if parsed is None:
        raise ValidationException(f"{field} must be an integer", details={"field": field})
    if not 1 <= parsed <= MAX_ID:
        raise ValidationException(f"{field} is out of range", details={"field": field})
    return parsed


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar or settings.default_avatar,
    }


class ConversationService(BaseService):
    """
    Service for managing two-party conversations.

    Handles conversation creation, listing and the participant guard
    used before transcript reads, appends and channel joins.
    """

    def __init__(
        self,
        db: Session,
        conversation_repository: Optional[ConversationRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        """
        Initialize conversation service.

        Args:
            db: Database session
            conversation_repository: Optional repository for conversations
            user_repository: Optional repository for users
        """
        super().__init__(db)
        self.conversation_repository = (
            conversation_repository or RepositoryFactory.create_conversation_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.logger = logging.getLogger(__name__)

    @BaseService.measure_operation("get_or_create_conversation")
    def get_or_create_conversation(self, caller_id: int, other_id: Any) -> Tuple[Conversation, bool]:
        """
        Get the conversation between the caller and another user, creating it on first contact.

        Args:
            caller_id: Authenticated user ID
            other_id: The other participant (int or integer string)

        Returns:
            Tuple of (conversation, created) where created is True if new

        Raises:
            ValidationException: other_id missing, not an integer, or the caller
            NotFoundException: other_id does not name an existing user
        """
        other = coerce_id(other_id)
        if other == caller_id:
            raise ValidationException(
                "Cannot start a conversation with yourself", details={"otherId": other}
            )
        if self.user_repository.get_by_id(other) is None:
            raise NotFoundException("User not found", details={"user_id": other})

        existing = self.conversation_repository.find_by_pair(caller_id, other)
        if existing is not None:
            return existing, False

        with self.transaction():
            try:
                conversation = self.conversation_repository.insert_pair(caller_id, other)
                created = True
            except ConflictException:
                # Another request created the pair between our lookup and insert
                self.logger.info(
                    "Conversation creation raced, reusing existing row",
                    extra={"user_ids": sorted((caller_id, other))},
                )
                winner = self.conversation_repository.find_by_pair(caller_id, other)
                if winner is None:
                    raise
                conversation, created = winner, False

        if created:
            self.logger.info(
                f"Created conversation {conversation.id}",
                extra={"conversation_id": conversation.id, "created_by": caller_id},
            )
        return conversation, created

    @BaseService.measure_operation("get_conversation")
    def get_conversation(self, conversation_id: int, caller_id: int) -> Conversation:
        """Fetch one conversation the caller participates in."""
        return self.require_participant(conversation_id, caller_id)

    def require_participant(self, conversation_id: int, user_id: int) -> Conversation:
        """
        Authorization guard for a conversation.

        Raises:
            NotFoundException: The conversation does not exist
            ForbiddenException: The user is not one of its two participants
        """
        conversation = self.conversation_repository.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundException(
                "Conversation not found", details={"conversation_id": conversation_id}
            )
        if not conversation.is_participant(user_id):
            self.logger.warning(f"User {user_id} is not a participant in conversation {conversation_id}")
            raise ForbiddenException(
                "Not a participant in this conversation",
                details={"conversation_id": conversation_id},
            )
        return conversation

    @BaseService.measure_operation("list_conversations")
    def list_conversations_for_user(
        self,
        user_id: int,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        List conversations for a user, most recently active first.

        Args:
            user_id: The user ID
            limit: Page size (1..conversation_page_size_max)
            cursor: next_cursor from a previous page

        Returns:
            Tuple of (serialized conversations, next_cursor or None)
        """
        page_size = settings.conversation_page_size if limit is None else limit
        if page_size < 1 or page_size > settings.conversation_page_size_max:
            raise ValidationException(
                f"limit must be between 1 and {settings.conversation_page_size_max}",
                details={"limit": limit},
            )
        after = decode_cursor(cursor) if cursor else None

        # Fetch one extra row to know whether another page exists
        rows = list(
            self.conversation_repository.find_for_user(user_id, limit=page_size + 1, after=after)
        )
        has_more = len(rows) > page_size
        rows = rows[:page_size]

        others = self.user_repository.get_many(c.get_other_user_id(user_id) for c in rows)
        items = [
            self.serialize_conversation(c, user_id, others.get(c.get_other_user_id(user_id)))
            for c in rows
        ]
        next_cursor = encode_cursor(rows[-1]) if has_more and rows else None
        return items, next_cursor

    def serialize_conversation(
        self,
        conversation: Conversation,
        viewer_id: int,
        other_user: Optional[User] = None,
    ) -> Dict[str, Any]:
        """Conversation as seen by one participant, with the other side's summary."""
        if other_user is None:
            other_id = conversation.get_other_user_id(viewer_id)
            other_user = (
                conversation.participant_a
                if conversation.user_a == other_id
                else conversation.participant_b
            )
        return {
            "id": conversation.id,
            "user_a": conversation.user_a,
            "user_b": conversation.user_b,
            "last_updated": conversation.last_updated,
            "created_at": conversation.created_at,
            "other_user": user_summary(other_user),
        }
