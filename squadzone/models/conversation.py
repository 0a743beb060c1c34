# squadzone/models/conversation.py
"""
Conversation model for two-party direct messaging.

One row per unordered pair of users. The pair is stored in canonical order
(``user_a < user_b``) so that whichever user initiates contact, both land on
the same row. Uniqueness of the pair is enforced by the database.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from .types import UTCDateTime, utcnow


class Conversation(Base):
    """
    Canonical relationship record between exactly two users.

    Attributes:
        id: Integer primary key
        user_a: Lower participant id
        user_b: Higher participant id
        last_updated: Timestamp of the newest message (creation time until then)
        created_at: When the conversation was created
    """

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_a = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_b = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    last_updated = Column(UTCDateTime(), nullable=False, default=utcnow)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    participant_a = relationship("User", foreign_keys=[user_a], lazy="joined")
    participant_b = relationship("User", foreign_keys=[user_b], lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_a", "user_b", name="uq_conversations_pair"),
        CheckConstraint("user_a < user_b", name="ck_conversations_pair_order"),
        Index("idx_conversations_user_a", "user_a"),
        Index("idx_conversations_user_b", "user_b"),
        Index("idx_conversations_last_updated", "last_updated"),
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, user_a={self.user_a}, user_b={self.user_b})>"

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.user_a, self.user_b)

    def get_other_user_id(self, current_user_id: int) -> int:
        """Return the id of the participant that is not ``current_user_id``."""
        if current_user_id == self.user_a:
            return int(self.user_b)
        return int(self.user_a)
