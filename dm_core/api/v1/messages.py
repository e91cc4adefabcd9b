"""
Message API routes.
Provides endpoints for sending, retrieving, editing, deleting and reacting to messages.
"""
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from dm_core.core.rate_limit import REACTION_LIMIT, SEND_LIMIT, limiter
from dm_core.dependencies import get_current_user_id, get_message_service, get_reaction_service
from dm_core.schemas.message import MessageCreate, MessageResponse, MessageUpdate
from dm_core.schemas.reaction import ReactionCreate, ReactionRemovedResponse, ReactionResponse
from dm_core.services.message_service import MessageService, message_to_dict
from dm_core.services.reaction_service import ReactionService, reaction_to_dict

router = APIRouter()


@router.post(
    "/",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a new message",
    description="Send a message to a conversation. Refused while either user blocks the other."
)
@limiter.limit(SEND_LIMIT)
async def send_message(
    request: Request,
    message_data: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    """
    Send a new message to a conversation.

    - **conversation_id**: Conversation ID
    - **content**: Message text (may be empty when media is attached)
    - **media_urls**: Already-uploaded media URLs
    - **media_type**: image, video, gif or none (inferred when omitted)
    """
    message = await service.send_message(
        conversation_id=message_data.conversation_id,
        sender_id=user_id,
        content=message_data.content,
        media_urls=message_data.media_urls,
        media_type=message_data.media_type,
    )
    return message_to_dict(message)


@router.get(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Get a message"
)
async def get_message(
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    return await service.get_message(message_id, user_id)


@router.put(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Edit a message",
    description="Edit your own message within the edit window."
)
async def edit_message(
    message_id: str,
    data: MessageUpdate,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    message = await service.edit_message(message_id, user_id, data.content)
    return message_to_dict(message)


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a message"
)
async def delete_message(
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    await service.delete_message(message_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{message_id}/reactions",
    response_model=List[ReactionResponse],
    summary="List reactions"
)
async def list_reactions(
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ReactionService = Depends(get_reaction_service)
):
    reactions = await service.list_reactions(message_id, actor_id=user_id)
    return [reaction_to_dict(r) for r in reactions]


@router.post(
    "/{message_id}/reactions",
    response_model=ReactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a reaction",
    description="Add a reaction. Beyond the per-user limit the oldest one is replaced."
)
@limiter.limit(REACTION_LIMIT)
async def add_reaction(
    request: Request,
    message_id: str,
    data: ReactionCreate,
    user_id: str = Depends(get_current_user_id),
    service: ReactionService = Depends(get_reaction_service)
):
    reaction = await service.add_reaction(message_id, user_id, data.emoji)
    return reaction_to_dict(reaction)


@router.delete(
    "/{message_id}/reactions/{emoji}",
    response_model=ReactionRemovedResponse,
    summary="Remove a reaction"
)
async def remove_reaction(
    message_id: str,
    emoji: str,
    user_id: str = Depends(get_current_user_id),
    service: ReactionService = Depends(get_reaction_service)
):
    removed = await service.remove_reaction(message_id, user_id, emoji)
    return {"removed": removed}
