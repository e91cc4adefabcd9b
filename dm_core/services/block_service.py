"""
Block service.
Maintains directional block edges and answers whether two users may message.
"""
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.core.exceptions import SelfBlock, UserNotFound
from dm_core.models.user_block import UserBlock
from dm_core.repositories.base import commit
from dm_core.repositories.block_repo import UserBlockRepository
from dm_core.repositories.user_repo import UserRepository
from dm_core.utils.datetime_utils import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockStatus:
    """Block edges between a viewer and another user, from the viewer's side."""

    blocked_by_me: bool = False
    blocked_me: bool = False

    @property
    def any(self) -> bool:
        return self.blocked_by_me or self.blocked_me


class BlockService:
    """Service for user blocking."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        """
        Initialize block service.

        Args:
            db: Database session
            clock: Source of the current time
        """
        self.db = db
        self.clock = clock
        self.block_repo = UserBlockRepository(db)
        self.user_repo = UserRepository(db)

    async def is_blocked(self, viewer_id: str, other_id: str) -> BlockStatus:
        """
        Block status between viewer and other.

        Returns:
            BlockStatus(False, False) when no edge exists in either direction
        """
        edges = await self.block_repo.get_edges_between(viewer_id, other_id)
        return BlockStatus(
            blocked_by_me=any(e.blocker_id == viewer_id and e.blocked_id == other_id for e in edges),
            blocked_me=any(e.blocker_id == other_id and e.blocked_id == viewer_id for e in edges),
        )

    async def block(self, blocker_id: str, blocked_id: str) -> BlockStatus:
        """
        Block a user. Blocking someone already blocked is a no-op.

        Raises:
            SelfBlock: If blocker and blocked are the same user
            UserNotFound: If blocked_id has no profile
        """
        if blocker_id == blocked_id:
            raise SelfBlock()

        if await self.block_repo.get_edge(blocker_id, blocked_id) is not None:
            return await self.is_blocked(blocker_id, blocked_id)

        if await self.user_repo.get(blocked_id) is None:
            raise UserNotFound()

        try:
            await self.block_repo.create_edge(blocker_id, blocked_id, self.clock())
            await commit(self.db)
        except IntegrityError:
            # A concurrent request inserted the same edge
            await self.db.rollback()
            status = await self.is_blocked(blocker_id, blocked_id)
            if not status.blocked_by_me:
                raise
            logger.info(f"User {blocker_id} already blocked {blocked_id} concurrently")
            return status

        logger.info(f"User {blocker_id} blocked {blocked_id}")
        return await self.is_blocked(blocker_id, blocked_id)

    async def unblock(self, blocker_id: str, blocked_id: str) -> BlockStatus:
        """Remove a block. Unblocking someone not blocked is a no-op."""
        if await self.block_repo.delete_edge(blocker_id, blocked_id):
            await commit(self.db)
            logger.info(f"User {blocker_id} unblocked {blocked_id}")

        return await self.is_blocked(blocker_id, blocked_id)

    async def list_blocked(self, blocker_id: str) -> List[UserBlock]:
        """Users blocked by blocker_id, most recent first."""
        return await self.block_repo.list_blocked(blocker_id)
