"""
Reaction service.

Each user keeps at most `cap` live reactions on a message. Adding one more
silently evicts that user's oldest reaction on the message.

The count-evict-insert sequence is not one transaction, so two concurrent
adds by the same user can leave cap + 1 rows. Reads compact such pairs back
to the cap (oldest evicted first) before returning.
"""
import logging
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.config import settings
from dm_core.core.exceptions import MessageDeleted, MessageNotFound, NotParticipant
from dm_core.models.message import Message, MessageReaction
from dm_core.repositories.base import commit
from dm_core.repositories.conversation_repo import ConversationRepository
from dm_core.repositories.message_repo import MessageRepository, MessageReactionRepository
from dm_core.utils.datetime_utils import Clock, ensure_utc, utc_now

logger = logging.getLogger(__name__)

R = TypeVar("R")


def compact_reactions(
    reactions_by_pair: Mapping[Hashable, Sequence[R]],
    cap: int
) -> Tuple[List[R], List[R]]:
    """
    Trim every (message, user) group down to its newest `cap` reactions.

    Args:
        reactions_by_pair: Reactions grouped by (message_id, user_id), each
            group ordered oldest first
        cap: Maximum reactions kept per group

    Returns:
        (kept, evicted), both flattened in group order

    Example:
        >>> compact_reactions({("m1", "u1"): ["r1", "r2", "r3"]}, 2)
        (['r2', 'r3'], ['r1'])
    """
    kept: List[R] = []
    evicted: List[R] = []
    for group in reactions_by_pair.values():
        overflow = max(len(group) - cap, 0)
        evicted.extend(group[:overflow])
        kept.extend(group[overflow:])
    return kept, evicted


def reaction_to_dict(reaction: MessageReaction) -> Dict[str, Any]:
    return {
        "id": reaction.id,
        "message_id": reaction.message_id,
        "user_id": reaction.user_id,
        "emoji": reaction.emoji,
        "created_at": ensure_utc(reaction.created_at),
    }


class ReactionService:
    """Service for message reactions."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now, cap: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.cap = settings.reaction_cap if cap is None else cap
        if self.cap < 1:
            raise ValueError(f"Reaction cap must be at least 1, got {self.cap}")
        self.message_repo = MessageRepository(db)
        self.reaction_repo = MessageReactionRepository(db)
        self.conversation_repo = ConversationRepository(db)

    async def _get_reactable(self, message_id: str, user_id: str) -> Message:
        message = await self.message_repo.get(message_id)
        if not message:
            raise MessageNotFound()
        if message.is_deleted:
            raise MessageDeleted()
        if not await self.conversation_repo.is_participant(message.conversation_id, user_id):
            raise NotParticipant()
        return message

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> MessageReaction:
        """
        Add a reaction, evicting the user's oldest ones if at the cap.

        Reacting with the same emoji twice records two reactions.

        Raises:
            MessageNotFound: Message does not exist
            MessageDeleted: Message was deleted
            NotParticipant: User is not in the message's conversation
        """
        await self._get_reactable(message_id, user_id)

        existing = await self.reaction_repo.get_user_reactions(message_id, user_id)
        newest = existing[-1].created_at if existing else None

        overflow = len(existing) - self.cap + 1
        if overflow > 0:
            await self.reaction_repo.delete_reactions(existing[:overflow])
            logger.debug(f"Evicted {overflow} reaction(s) of {user_id} on {message_id}")

        reaction = await self.reaction_repo.add_reaction(
            message_id,
            user_id,
            emoji,
            now=self.clock(),
            after=newest,
        )
        await commit(self.db)
        return reaction

    async def remove_reaction(self, message_id: str, user_id: str, emoji: str) -> bool:
        """
        Remove the user's most recent reaction with this emoji.

        Returns:
            False if there was nothing to remove
        """
        reaction = await self.reaction_repo.find_latest_match(message_id, user_id, emoji)
        if reaction is None:
            return False

        await self.reaction_repo.delete_reactions([reaction])
        await commit(self.db)
        return True

    async def list_reactions(self, message_id: str, actor_id: Optional[str] = None) -> List[MessageReaction]:
        """
        Live reactions on a message, oldest first.

        Any (message, user) group above the cap is compacted first and the
        evicted rows are deleted.

        Raises:
            MessageNotFound: Message does not exist
            NotParticipant: actor_id given and not in the message's conversation
        """
        message = await self.message_repo.get(message_id)
        if not message:
            raise MessageNotFound()
        if actor_id is not None and not await self.conversation_repo.is_participant(message.conversation_id, actor_id):
            raise NotParticipant()

        reactions = await self.reaction_repo.get_message_reactions(message_id)

        by_pair: Dict[Tuple[str, str], List[MessageReaction]] = {}
        for reaction in reactions:
            by_pair.setdefault((reaction.message_id, reaction.user_id), []).append(reaction)

        kept, evicted = compact_reactions(by_pair, self.cap)
        if evicted:
            await self.reaction_repo.delete_reactions(evicted)
            await commit(self.db)
            logger.info(f"Compacted {len(evicted)} excess reaction(s) on message {message_id}")

        return sorted(kept, key=lambda r: (ensure_utc(r.created_at), r.id))
