"""
Conversation repository for database operations.
Handles conversations, participant links and cascade deletion.
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, func, and_, desc, delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.models.conversation import Conversation, ConversationParticipant, make_pair_key
from dm_core.models.message import Message, MessageReaction
from dm_core.repositories.base import BaseRepository, translate_backend_errors


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    @translate_backend_errors
    async def get_user_conversation_ids(self, user_id: str) -> List[str]:
        """IDs of every conversation the user participates in."""
        result = await self.db.execute(
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id == user_id)
        )
        return [row[0] for row in result.all()]

    @translate_backend_errors
    async def find_shared_conversation_ids(
        self,
        user_id: str,
        conversation_ids: List[str]
    ) -> List[str]:
        """
        Among conversation_ids, the ones user_id also participates in.

        Ordered by conversation creation so "first match" is stable.
        """
        if not conversation_ids:
            return []

        result = await self.db.execute(
            select(ConversationParticipant.conversation_id)
            .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
            .where(
                and_(
                    ConversationParticipant.user_id == user_id,
                    ConversationParticipant.conversation_id.in_(conversation_ids)
                )
            )
            .order_by(Conversation.created_at, Conversation.id)
        )
        return [row[0] for row in result.all()]

    @translate_backend_errors
    async def get_by_pair(self, user_a: str, user_b: str) -> Optional[Conversation]:
        """Conversation for an unordered pair, looked up by its canonical key."""
        result = await self.db.execute(
            select(Conversation).where(Conversation.pair_key == make_pair_key(user_a, user_b))
        )
        return result.scalar_one_or_none()

    @translate_backend_errors
    async def create_with_participants(
        self,
        user_a: str,
        user_b: str,
        now: datetime
    ) -> Conversation:
        """
        Insert a conversation row and its two participant links.

        Raises:
            IntegrityError: If a conversation for the pair already exists
        """
        conversation = Conversation(
            pair_key=make_pair_key(user_a, user_b),
            created_at=now,
            updated_at=now,
        )
        self.db.add(conversation)
        await self.db.flush()

        for user_id in (user_a, user_b):
            self.db.add(ConversationParticipant(
                conversation_id=conversation.id,
                user_id=user_id,
                joined_at=now,
            ))

        await self.db.flush()
        await self.db.refresh(conversation, attribute_names=["participants"])
        return conversation

    @translate_backend_errors
    async def list_for_user(self, user_id: str) -> List[Conversation]:
        """Conversations of a user, most recently active first."""
        member_subquery = (
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id == user_id)
        )
        result = await self.db.execute(
            select(Conversation)
            .where(Conversation.id.in_(member_subquery))
            .order_by(desc(Conversation.updated_at), desc(Conversation.created_at))
        )
        return list(result.scalars().all())

    @translate_backend_errors
    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id
            )
        )
        return result.scalar_one_or_none() is not None

    @translate_backend_errors
    async def touch(self, conversation_id: str, now: datetime) -> None:
        """Bump updated_at so the conversation sorts to the top of lists."""
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()

    @translate_backend_errors
    async def get_last_messages(self, conversation_ids: List[str]) -> Dict[str, Message]:
        """
        Most recent non-deleted message of each conversation.

        Returns:
            Mapping conversation_id -> Message (conversations without messages are absent)
        """
        if not conversation_ids:
            return {}

        latest = (
            select(
                Message.conversation_id.label("conversation_id"),
                func.max(Message.sequence_number).label("max_seq")
            )
            .where(
                and_(
                    Message.conversation_id.in_(conversation_ids),
                    Message.deleted_at.is_(None)
                )
            )
            .group_by(Message.conversation_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message).join(
                latest,
                and_(
                    Message.conversation_id == latest.c.conversation_id,
                    Message.sequence_number == latest.c.max_seq
                )
            )
        )
        return {m.conversation_id: m for m in result.scalars().all()}

    @translate_backend_errors
    async def get_unread_counts(self, conversation_ids: List[str], user_id: str) -> Dict[str, int]:
        """Unread, non-deleted messages from the other participant, per conversation."""
        if not conversation_ids:
            return {}

        result = await self.db.execute(
            select(Message.conversation_id, func.count())
            .where(
                and_(
                    Message.conversation_id.in_(conversation_ids),
                    Message.sender_id != user_id,
                    Message.is_read.is_(False),
                    Message.deleted_at.is_(None)
                )
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result.all()}

    @translate_backend_errors
    async def delete_cascade(self, conversation_id: str) -> int:
        """
        Remove a conversation with its reactions, messages and participant links.

        Caller commits; nothing is visible to other sessions until then.

        Returns:
            Number of message rows removed
        """
        message_ids = select(Message.id).where(Message.conversation_id == conversation_id)

        await self.db.execute(
            delete(MessageReaction).where(MessageReaction.message_id.in_(message_ids))
        )
        result = await self.db.execute(
            delete(Message).where(Message.conversation_id == conversation_id)
        )
        await self.db.execute(
            delete(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == conversation_id)
        )
        await self.db.execute(
            delete(Conversation).where(Conversation.id == conversation_id)
        )
        await self.db.flush()
        return result.rowcount or 0
