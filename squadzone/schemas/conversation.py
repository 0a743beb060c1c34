# squadzone/schemas/conversation.py
"""
Pydantic schemas for conversation API.

Provides request/response models for the two-party conversation endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.types import MAX_ID


class UserSummary(BaseModel):
    """Minimal user info for conversation list."""

    id: int
    name: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    """A conversation as seen by one of its participants."""

    id: int
    user_a: int
    user_b: int
    last_updated: datetime
    created_at: Optional[datetime] = None
    other_user: Optional[UserSummary] = None


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]
    next_cursor: Optional[str] = None


class ConversationDetailResponse(BaseModel):
    conversation: ConversationResponse


class CreateConversationRequest(BaseModel):
    """Request to get or create the conversation with another user."""

    other_id: Optional[int] = Field(default=None, alias="otherId", ge=1, le=MAX_ID)

    model_config = ConfigDict(populate_by_name=True)


class CreateConversationResponse(BaseModel):
    conversation: ConversationResponse
    created: bool


class MessageResponse(BaseModel):
    """A persisted message with its author's display details."""

    id: int
    conversation_id: int
    sender_id: int
    text: str
    created: datetime
    sender_name: Optional[str] = None
    sender_avatar: Optional[str] = None


class MessagesResponse(BaseModel):
    messages: List[MessageResponse]


class SendMessageRequest(BaseModel):
    """Body of a send; absent or null text is stored as an empty message."""

    text: Optional[str] = None


class SendMessageResponse(BaseModel):
    message: MessageResponse
