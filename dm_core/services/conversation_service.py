"""
Conversation service containing business logic for conversation operations.
Handles two-party conversation discovery, listing and cascade deletion.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.core.exceptions import ConversationNotFound, NotParticipant, SelfConversation, UserNotFound
from dm_core.core.identity import IdentityProvider
from dm_core.models.conversation import Conversation
from dm_core.models.message import Message
from dm_core.repositories.base import commit
from dm_core.repositories.conversation_repo import ConversationRepository
from dm_core.services.message_service import message_to_dict
from dm_core.utils.datetime_utils import Clock, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for conversation operations with business logic."""

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        clock: Clock = utc_now
    ):
        """
        Initialize conversation service.

        Args:
            db: Database session
            identity: Profile lookup for the other participant
            clock: Source of the current time
        """
        self.db = db
        self.identity = identity
        self.clock = clock
        self.conversation_repo = ConversationRepository(db)

    async def _find_existing(self, actor_id: str, other_id: str) -> Optional[str]:
        """First conversation both users participate in, if any."""
        actor_conversations = await self.conversation_repo.get_user_conversation_ids(actor_id)
        if not actor_conversations:
            return None

        shared = await self.conversation_repo.find_shared_conversation_ids(other_id, actor_conversations)
        return shared[0] if shared else None

    async def get_or_create_conversation(self, actor_id: str, other_id: str) -> str:
        """
        Get the conversation between two users, creating it on first contact.

        Idempotent in either argument order: A->B and B->A return the same id.

        Args:
            actor_id: Acting user
            other_id: The other participant

        Returns:
            Conversation ID

        Raises:
            SelfConversation: If actor_id == other_id
            UserNotFound: If other_id has no profile
        """
        if actor_id == other_id:
            raise SelfConversation()

        existing = await self._find_existing(actor_id, other_id)
        if existing:
            return existing

        if await self.identity.get_profile(other_id) is None:
            raise UserNotFound()

        try:
            conversation = await self.conversation_repo.create_with_participants(
                actor_id,
                other_id,
                self.clock()
            )
            await commit(self.db)
        except IntegrityError:
            # Another request created the pair first; its row wins
            await self.db.rollback()
            winner = await self.conversation_repo.get_by_pair(actor_id, other_id)
            if winner is None:
                raise
            logger.info(f"Concurrent creation for {actor_id}/{other_id}, using {winner.id}")
            return winner.id

        logger.info(f"Created conversation {conversation.id} between {actor_id} and {other_id}")
        return conversation.id

    async def _summaries(
        self,
        conversations: List[Conversation],
        actor_id: str
    ) -> List[Dict[str, Any]]:
        ids = [c.id for c in conversations]
        other_ids = {c.id: c.other_participant_id(actor_id) for c in conversations}

        profiles = await self.identity.get_profiles([oid for oid in other_ids.values() if oid])
        last_messages: Dict[str, Message] = await self.conversation_repo.get_last_messages(ids)
        unread_counts = await self.conversation_repo.get_unread_counts(ids, actor_id)

        summaries = []
        for conversation in conversations:
            other_id = other_ids[conversation.id]
            last = last_messages.get(conversation.id)
            summaries.append({
                "id": conversation.id,
                "other_participant": profiles.get(other_id) or {"id": other_id},
                "last_message": message_to_dict(last) if last else None,
                "unread_count": unread_counts.get(conversation.id, 0),
                "created_at": ensure_utc(conversation.created_at),
                "updated_at": ensure_utc(conversation.updated_at),
            })
        return summaries

    async def list_conversations(self, actor_id: str) -> List[Dict[str, Any]]:
        """
        Conversations of the actor, most recently active first.

        Each summary carries the other participant's profile, the most recent
        non-deleted message and the actor's unread count.
        """
        conversations = await self.conversation_repo.list_for_user(actor_id)
        return await self._summaries(conversations, actor_id)

    async def _get_for_participant(self, conversation_id: str, actor_id: str) -> Conversation:
        conversation = await self.conversation_repo.get(conversation_id)
        if not conversation:
            raise ConversationNotFound()
        if actor_id not in conversation.participant_ids:
            raise NotParticipant()
        return conversation

    async def get_conversation(self, conversation_id: str, actor_id: str) -> Dict[str, Any]:
        """
        Summary of a single conversation.

        Raises:
            ConversationNotFound: If the conversation does not exist
            NotParticipant: If the actor is not one of the two participants
        """
        conversation = await self._get_for_participant(conversation_id, actor_id)
        summaries = await self._summaries([conversation], actor_id)
        return summaries[0]

    async def delete_conversation(self, conversation_id: str, actor_id: str) -> None:
        """
        Delete a conversation with all of its messages and reactions.

        Either participant may delete; the removal is committed as one unit.

        Raises:
            ConversationNotFound: If the conversation does not exist
            NotParticipant: If the actor is not a participant
        """
        await self._get_for_participant(conversation_id, actor_id)

        removed = await self.conversation_repo.delete_cascade(conversation_id)
        await commit(self.db)

        logger.info(f"User {actor_id} deleted conversation {conversation_id} ({removed} messages)")
