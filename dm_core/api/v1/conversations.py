"""
Conversation API routes.
Provides endpoints for opening, listing and deleting direct conversations.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status

from dm_core.dependencies import (
    get_conversation_service,
    get_current_user_id,
    get_message_service,
)
from dm_core.schemas.conversation import ConversationCreate, ConversationCreated, ConversationSummary
from dm_core.schemas.message import MarkReadResponse, MessageResponse
from dm_core.services.conversation_service import ConversationService
from dm_core.services.message_service import MessageService

router = APIRouter()


@router.post(
    "/",
    response_model=ConversationCreated,
    summary="Open a conversation",
    description="Return the conversation with another user, creating it on first contact."
)
async def open_conversation(
    data: ConversationCreate,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service)
):
    conversation_id = await service.get_or_create_conversation(user_id, data.other_user_id)
    return {"conversation_id": conversation_id}


@router.get(
    "/",
    response_model=List[ConversationSummary],
    summary="List conversations",
    description="Conversations of the current user, most recently active first."
)
async def list_conversations(
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.list_conversations(user_id)


@router.get(
    "/{conversation_id}",
    response_model=ConversationSummary,
    summary="Get a conversation"
)
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.get_conversation(conversation_id, user_id)


@router.delete(
    "/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a conversation",
    description="Permanently delete the conversation with all its messages and reactions."
)
async def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service)
):
    await service.delete_conversation(conversation_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{conversation_id}/messages",
    response_model=List[MessageResponse],
    summary="List messages",
    description="Messages of the conversation, oldest first. Deleted messages are omitted."
)
async def list_messages(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    return await service.list_messages(conversation_id, user_id)


@router.post(
    "/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark conversation read"
)
async def mark_read(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    updated = await service.mark_read(conversation_id, user_id)
    return {"updated_count": updated}
