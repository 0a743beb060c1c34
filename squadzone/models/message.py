# squadzone/models/message.py
"""
Message model.

Messages are append-only. The transcript of a conversation is its messages
ordered by ``created`` ascending, ties broken by ``id``.
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .types import UTCDateTime, utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False, default="")
    created = Column(UTCDateTime(), nullable=False, default=utcnow)

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")

    __table_args__ = (Index("idx_messages_conversation_created", "conversation_id", "created", "id"),)

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation={self.conversation_id}, sender={self.sender_id})>"
