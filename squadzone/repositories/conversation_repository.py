# squadzone/repositories/conversation_repository.py
"""
Conversation Repository for two-party messaging.

Provides data access methods for the conversation directory and the activity
tracker. Follows the repository pattern with clean separation from business
logic: nothing here commits.
"""

from datetime import datetime
from typing import Optional, Sequence, Tuple, cast

from sqlalchemy import and_, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictException, RepositoryException
from ..models.conversation import Conversation
from ..models.types import utcnow
from .base_repository import BaseRepository


def canonical_pair(user_id_1: int, user_id_2: int) -> Tuple[int, int]:
    """Order a pair of user ids so the lower id comes first."""
    return min(user_id_1, user_id_2), max(user_id_1, user_id_2)


class ConversationRepository(BaseRepository[Conversation]):
    """
    Repository for Conversation entity operations.

    Handles all database operations for conversations including:
    - Finding conversations by (unordered) user pair
    - Conflict-tolerant creation of the canonical pair row
    - Listing a user's conversations by recency
    - Updating conversation activity (last_updated)
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        super().__init__(db, Conversation)

    def find_by_pair(self, user_id_1: int, user_id_2: int) -> Optional[Conversation]:
        """
        Find the conversation between two users, regardless of argument order.

        Args:
            user_id_1: One participant
            user_id_2: The other participant

        Returns:
            The conversation if found, None otherwise
        """
        low, high = canonical_pair(user_id_1, user_id_2)
        try:
            result = (
                self.db.query(Conversation)
                .filter(Conversation.user_a == low, Conversation.user_b == high)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding conversation for pair ({low}, {high}): {str(e)}")
            raise RepositoryException(f"Failed to find conversation: {str(e)}")
        return cast(Optional[Conversation], result)

    def insert_pair(
        self, user_id_1: int, user_id_2: int, timestamp: Optional[datetime] = None
    ) -> Conversation:
        """
        Insert the canonical row for a pair.

        The insert tolerates the (user_a, user_b) uniqueness constraint. When
        another transaction created the row first this raises ConflictException
        instead of a second row ever existing; callers retry as a lookup.

        Args:
            user_id_1: One participant
            user_id_2: The other participant
            timestamp: Initial last_updated value (defaults to now)

        Returns:
            The newly created conversation

        Raises:
            ConflictException: The pair already has a conversation
        """
        low, high = canonical_pair(user_id_1, user_id_2)
        now = timestamp or utcnow()
        values = {"user_a": low, "user_b": high, "last_updated": now, "created_at": now}

        dialect = self.dialect_name
        try:
            if dialect in ("postgresql", "sqlite"):
                insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
                stmt = (
                    insert_fn(Conversation)
                    .values(**values)
                    .on_conflict_do_nothing(index_elements=["user_a", "user_b"])
                    .returning(Conversation.id)
                )
                new_id = self.db.execute(stmt).scalar_one_or_none()
                if new_id is None:
                    raise ConflictException(
                        "Conversation already exists for this pair",
                        details={"user_a": low, "user_b": high},
                    )
                return cast(Conversation, self.db.get(Conversation, new_id))

            # Other dialects: isolate the insert in a savepoint so a duplicate
            # only rolls back this statement.
            try:
                with self.db.begin_nested():
                    conversation = Conversation(**values)
                    self.db.add(conversation)
            except IntegrityError as exc:
                raise ConflictException(
                    "Conversation already exists for this pair",
                    details={"user_a": low, "user_b": high},
                ) from exc
            return conversation
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating conversation for pair ({low}, {high}): {str(e)}")
            raise RepositoryException(f"Failed to create conversation: {str(e)}")

    def find_for_user(
        self,
        user_id: int,
        limit: int = 50,
        after: Optional[Tuple[datetime, int]] = None,
    ) -> Sequence[Conversation]:
        """
        Find conversations where a user is a participant, most recent first.

        Keyset pagination on (last_updated, id), both descending.

        Args:
            user_id: The user ID to find conversations for
            limit: Maximum number of conversations to return
            after: (last_updated, id) of the last item of the previous page

        Returns:
            Conversations ordered by last_updated desc, id desc
        """
        query = self.db.query(Conversation).filter(
            or_(Conversation.user_a == user_id, Conversation.user_b == user_id)
        )

        if after is not None:
            cursor_time, cursor_id = after
            query = query.filter(
                or_(
                    Conversation.last_updated < cursor_time,
                    and_(Conversation.last_updated == cursor_time, Conversation.id < cursor_id),
                )
            )

        query = query.order_by(Conversation.last_updated.desc(), Conversation.id.desc())
        try:
            return cast(Sequence[Conversation], query.limit(limit).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing conversations for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list conversations: {str(e)}")

    def touch(self, conversation_id: int, timestamp: datetime) -> Optional[Conversation]:
        """
        Set last_updated for a conversation.

        Args:
            conversation_id: The conversation ID
            timestamp: The new activity timestamp

        Returns:
            The updated conversation if found
        """
        conversation = self.get_by_id(conversation_id)
        if conversation is None:
            return None
        try:
            conversation.last_updated = timestamp
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error touching conversation {conversation_id}: {str(e)}")
            raise RepositoryException(f"Failed to update conversation activity: {str(e)}")
        return conversation
