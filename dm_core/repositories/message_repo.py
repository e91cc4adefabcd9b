"""
Message repository for database operations.
Handles CRUD and query operations for messages and reactions.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, and_, desc, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.models.message import Message, MessageReaction, MediaType
from dm_core.repositories.base import BaseRepository, translate_backend_errors
from dm_core.utils.datetime_utils import strictly_after

logger = logging.getLogger(__name__)

# Inserts attempted when concurrent senders keep taking the next sequence number
SEQUENCE_ATTEMPTS = 5


class MessageRepository(BaseRepository[Message]):
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, db)

    @translate_backend_errors
    async def get_latest(self, conversation_id: str) -> Optional[Message]:
        """Newest message of a conversation, deleted or not."""
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(desc(Message.sequence_number))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @translate_backend_errors
    async def create_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        media_urls: List[str],
        media_type: MediaType,
        now: datetime
    ) -> Message:
        """
        Insert a message at the end of its conversation.

        Assigns the next sequence number and a created_at strictly greater
        than the previous message's, whether or not that one is deleted.

        Another sender can commit the same sequence number between the read
        and the insert. Each insert runs in a savepoint; on a unique
        violation only the savepoint is rolled back and the insert is retried
        from a fresh read.
        """
        for attempt in range(1, SEQUENCE_ATTEMPTS + 1):
            latest = await self.get_latest(conversation_id)
            sequence_number = (latest.sequence_number + 1) if latest else 1
            message = Message(
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                media_urls=list(media_urls),
                media_type=media_type,
                sequence_number=sequence_number,
                created_at=strictly_after(now, latest.created_at if latest else None),
                is_read=False,
                is_edited=False,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(message)
                    await self.db.flush()
            except IntegrityError:
                if attempt == SEQUENCE_ATTEMPTS:
                    raise
                logger.info(
                    f"Sequence number {sequence_number} taken in conversation "
                    f"{conversation_id}, retrying ({attempt}/{SEQUENCE_ATTEMPTS})"
                )
                continue
            return message

    @translate_backend_errors
    async def get_conversation_messages(self, conversation_id: str) -> List[Message]:
        """Non-deleted messages of a conversation, oldest first."""
        result = await self.db.execute(
            select(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.deleted_at.is_(None)
            )
            .order_by(Message.created_at, Message.sequence_number)
        )
        return list(result.scalars().all())

    @translate_backend_errors
    async def soft_delete(self, message: Message, deleted_by: str, now: datetime) -> Message:
        """Mark a message deleted (set deleted_at/deleted_by)."""
        message.deleted_at = now
        message.deleted_by = deleted_by
        await self.db.flush()
        return message

    @translate_backend_errors
    async def mark_conversation_read(self, conversation_id: str, reader_id: str) -> int:
        """
        Set is_read on every unread message in the conversation not sent by reader_id.

        Returns:
            Number of rows updated
        """
        result = await self.db.execute(
            update(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    Message.sender_id != reader_id,
                    Message.is_read.is_(False)
                )
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        return result.rowcount or 0


class MessageReactionRepository(BaseRepository[MessageReaction]):
    """Repository for message reaction operations."""

    def __init__(self, db: AsyncSession):
        """Initialize message reaction repository."""
        super().__init__(MessageReaction, db)

    @translate_backend_errors
    async def get_user_reactions(self, message_id: str, user_id: str) -> List[MessageReaction]:
        """Reactions of one user on one message, oldest first."""
        result = await self.db.execute(
            select(MessageReaction)
            .where(
                and_(
                    MessageReaction.message_id == message_id,
                    MessageReaction.user_id == user_id
                )
            )
            .order_by(MessageReaction.created_at, MessageReaction.id)
        )
        return list(result.scalars().all())

    @translate_backend_errors
    async def add_reaction(
        self,
        message_id: str,
        user_id: str,
        emoji: str,
        now: datetime,
        after: Optional[datetime] = None
    ) -> MessageReaction:
        """
        Insert a reaction row.

        Args:
            after: created_at of the user's newest existing reaction on this
                message; the new row is stamped strictly later
        """
        reaction = MessageReaction(
            message_id=message_id,
            user_id=user_id,
            emoji=emoji,
            created_at=strictly_after(now, after),
        )
        self.db.add(reaction)
        await self.db.flush()
        return reaction

    @translate_backend_errors
    async def delete_reactions(self, reactions: List[MessageReaction]) -> int:
        """Hard delete the given reaction rows."""
        for reaction in reactions:
            await self.db.delete(reaction)
        await self.db.flush()
        return len(reactions)

    @translate_backend_errors
    async def find_latest_match(
        self,
        message_id: str,
        user_id: str,
        emoji: str
    ) -> Optional[MessageReaction]:
        """Most recent reaction matching (message, user, emoji)."""
        result = await self.db.execute(
            select(MessageReaction)
            .where(
                and_(
                    MessageReaction.message_id == message_id,
                    MessageReaction.user_id == user_id,
                    MessageReaction.emoji == emoji
                )
            )
            .order_by(desc(MessageReaction.created_at), desc(MessageReaction.id))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @translate_backend_errors
    async def get_message_reactions(self, message_id: str) -> List[MessageReaction]:
        """All reactions on a message, oldest first."""
        result = await self.db.execute(
            select(MessageReaction)
            .where(MessageReaction.message_id == message_id)
            .order_by(MessageReaction.created_at, MessageReaction.id)
        )
        return list(result.scalars().all())

    @translate_backend_errors
    async def get_reactions_for_messages(self, message_ids: List[str]) -> Dict[str, List[MessageReaction]]:
        """Reactions grouped by message, each list oldest first."""
        grouped: Dict[str, List[MessageReaction]] = {message_id: [] for message_id in message_ids}
        if not message_ids:
            return grouped

        result = await self.db.execute(
            select(MessageReaction)
            .where(MessageReaction.message_id.in_(message_ids))
            .order_by(MessageReaction.created_at, MessageReaction.id)
        )
        for reaction in result.scalars().all():
            grouped[reaction.message_id].append(reaction)
        return grouped
