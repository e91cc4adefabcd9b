"""
Notification repository.
Stores alerts and reads delivery preferences.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.models.notification import Notification, NotificationPreferences
from dm_core.repositories.base import BaseRepository, translate_backend_errors


class NotificationRepository(BaseRepository[Notification]):
    """Repository for stored notifications."""

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    @translate_backend_errors
    async def get_preferences(self, user_id: str) -> Optional[NotificationPreferences]:
        result = await self.db.execute(
            select(NotificationPreferences).where(NotificationPreferences.user_id == user_id)
        )
        return result.scalar_one_or_none()
