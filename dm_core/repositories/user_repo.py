"""
User profile repository.
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.models.user import User
from dm_core.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Read access to profile rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_profiles(self, user_ids: List[str]) -> List[User]:
        """Profiles for the given ids; unknown ids are skipped."""
        return await self.get_many(list(dict.fromkeys(user_ids)))
