"""
Dependency injection for FastAPI routes.

Wires the process-wide collaborators (live update channel, notification
dispatcher, clock) and the per-request database session into the services.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.core.database import get_db
from dm_core.core.identity import IdentityProvider
from dm_core.core.live_updates import LiveUpdateChannel, live_updates
from dm_core.core.notifications import NotificationDispatcher, get_notification_sink
from dm_core.services.block_service import BlockService
from dm_core.services.conversation_service import ConversationService
from dm_core.services.message_service import MessageService
from dm_core.services.reaction_service import ReactionService
from dm_core.utils.datetime_utils import Clock, utc_now


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    Dependency to get the authenticated user's id from the bearer token.

    Raises:
        SecurityException: 401 if the token is missing or invalid

    Example:
        ```python
        @router.get("/protected")
        async def protected_route(user_id: str = Depends(get_current_user_id)):
            return {"user_id": user_id}
        ```
    """
    return IdentityProvider.current_actor(authorization)


def get_clock() -> Clock:
    return utc_now


def get_live_channel() -> LiveUpdateChannel:
    return live_updates


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Dispatcher over the sink selected by settings (built once per process)."""
    return NotificationDispatcher(get_notification_sink())


def get_identity(db: AsyncSession = Depends(get_db)) -> IdentityProvider:
    return IdentityProvider(db)


def get_block_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> BlockService:
    return BlockService(db, clock)


def get_conversation_service(
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    clock: Clock = Depends(get_clock)
) -> ConversationService:
    return ConversationService(db, identity, clock)


def get_message_service(
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    blocks: BlockService = Depends(get_block_service),
    live_channel: LiveUpdateChannel = Depends(get_live_channel),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    clock: Clock = Depends(get_clock)
) -> MessageService:
    return MessageService(db, identity, blocks, live_channel, dispatcher, clock)


def get_reaction_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> ReactionService:
    return ReactionService(db, clock)
