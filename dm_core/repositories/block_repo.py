"""
Block repository for database operations on directional block edges.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, delete, desc, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.models.user_block import UserBlock
from dm_core.repositories.base import translate_backend_errors


class UserBlockRepository:
    """Repository for user block edges (composite key, so not a BaseRepository)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_backend_errors
    async def get_edge(self, blocker_id: str, blocked_id: str) -> Optional[UserBlock]:
        result = await self.db.execute(
            select(UserBlock).where(
                UserBlock.blocker_id == blocker_id,
                UserBlock.blocked_id == blocked_id
            )
        )
        return result.scalar_one_or_none()

    @translate_backend_errors
    async def get_edges_between(self, user_a: str, user_b: str) -> List[UserBlock]:
        """Edges in both directions between two users (0, 1 or 2 rows)."""
        result = await self.db.execute(
            select(UserBlock).where(
                or_(
                    and_(UserBlock.blocker_id == user_a, UserBlock.blocked_id == user_b),
                    and_(UserBlock.blocker_id == user_b, UserBlock.blocked_id == user_a)
                )
            )
        )
        return list(result.scalars().all())

    @translate_backend_errors
    async def create_edge(self, blocker_id: str, blocked_id: str, now: datetime) -> UserBlock:
        edge = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id, created_at=now)
        self.db.add(edge)
        await self.db.flush()
        return edge

    @translate_backend_errors
    async def delete_edge(self, blocker_id: str, blocked_id: str) -> bool:
        result = await self.db.execute(
            delete(UserBlock).where(
                UserBlock.blocker_id == blocker_id,
                UserBlock.blocked_id == blocked_id
            )
        )
        await self.db.flush()
        return (result.rowcount or 0) > 0

    @translate_backend_errors
    async def list_blocked(self, blocker_id: str) -> List[UserBlock]:
        """Edges created by blocker_id, newest first."""
        result = await self.db.execute(
            select(UserBlock)
            .where(UserBlock.blocker_id == blocker_id)
            .order_by(desc(UserBlock.created_at))
        )
        return list(result.scalars().all())
