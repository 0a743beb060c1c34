# squadzone/routes/v1/conversations.py
"""
Conversations routes - API v1

Conversation endpoints under /api/conversations.
All business logic delegated to ConversationService / MessageService.

Routes have ZERO direct DB access - all operations go through service layer.

Endpoints:
    GET /                               -> List user's conversations
    POST /                              -> Get or create conversation with another user
    GET /{conversation_id}              -> Get conversation details
    GET /{conversation_id}/messages     -> Full transcript
    POST /{conversation_id}/messages    -> Send a message
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ...api.dependencies.auth import get_current_user_id
from ...core.concurrency import run_blocking
from ...database import get_db
from ...models.types import MAX_ID
from ...schemas.conversation import (
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from ...services.conversation_service import ConversationService
from ...services.message_service import MessageService
from ...services.messaging import publish_conversation_message

logger = logging.getLogger(__name__)

# No prefix here, added when mounting in main.py
router = APIRouter(tags=["conversations-v1"])


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    """Dependency for ConversationService."""
    return ConversationService(db)


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    """Dependency for MessageService."""
    return MessageService(db)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationListResponse:
    """List the caller's conversations, most recently active first."""
    items, next_cursor = await run_blocking(
        service.list_conversations_for_user, user_id, limit=limit, cursor=cursor
    )
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(item) for item in items],
        next_cursor=next_cursor,
    )


@router.post("", response_model=CreateConversationResponse)
async def create_conversation(
    request: CreateConversationRequest,
    user_id: int = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
) -> CreateConversationResponse:
    """
    Get the conversation with another user, creating it on first contact.

    Calling this from either side returns the same conversation.
    """

    def _get_or_create() -> tuple[dict, bool]:
        conversation, created = service.get_or_create_conversation(user_id, request.other_id)
        return service.serialize_conversation(conversation, user_id), created

    data, created = await run_blocking(_get_or_create)
    return CreateConversationResponse(
        conversation=ConversationResponse.model_validate(data), created=created
    )


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationDetailResponse:
    def _get() -> dict:
        conversation = service.get_conversation(conversation_id, user_id)
        return service.serialize_conversation(conversation, user_id)

    data = await run_blocking(_get)
    return ConversationDetailResponse(conversation=ConversationResponse.model_validate(data))


@router.get("/{conversation_id}/messages", response_model=MessagesResponse)
async def get_messages(
    conversation_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> MessagesResponse:
    """Full transcript, oldest first."""
    items = await run_blocking(service.list_messages, conversation_id, user_id)
    return MessagesResponse(messages=[MessageResponse.model_validate(item) for item in items])


@router.post("/{conversation_id}/messages", response_model=SendMessageResponse)
async def send_message(
    conversation_id: int = Path(..., ge=1, le=MAX_ID),
    request: Optional[SendMessageRequest] = None,
    user_id: int = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service),
) -> SendMessageResponse:
    """
    Send a message in a conversation.

    The message and the conversation's last_updated are committed together;
    only then is it pushed to sockets joined to the conversation.
    """
    text = request.text if request is not None else None
    data = await run_blocking(service.send_message, conversation_id, user_id, text)
    message = MessageResponse.model_validate(data)

    # Fire-and-forget: failures are logged inside, never fail the request
    await publish_conversation_message(conversation_id, message.model_dump(mode="json"))

    return SendMessageResponse(message=message)
