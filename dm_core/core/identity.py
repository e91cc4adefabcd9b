"""
Identity provider.

Resolves the acting user from a bearer token and looks up public profiles,
caching them in Redis. Passed explicitly into the services that need it.
"""
import logging
from typing import Dict, Iterable, Optional

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.core.cache import cache_profile, get_cached_profile
from dm_core.core.security import decode_access_token, extract_token_from_header
from dm_core.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class IdentityProvider:
    """Current actor and profile lookup backed by the profiles table."""

    def __init__(self, db: AsyncSession, use_cache: bool = True):
        self.user_repo = UserRepository(db)
        self.use_cache = use_cache

    @staticmethod
    def current_actor(authorization: Optional[str]) -> str:
        """
        User id of the caller.

        Raises:
            SecurityException: Missing or invalid bearer token
        """
        payload = decode_access_token(extract_token_from_header(authorization))
        return str(payload.get("sub") or payload.get("id"))

    async def _cached(self, user_id: str) -> Optional[dict]:
        if not self.use_cache:
            return None
        try:
            return await get_cached_profile(user_id)
        except RedisError as e:
            logger.warning(f"Profile cache read failed for {user_id}: {e}")
            return None

    async def _store(self, profile: dict) -> None:
        if not self.use_cache:
            return
        try:
            await cache_profile(profile["id"], profile)
        except RedisError as e:
            logger.warning(f"Profile cache write failed for {profile['id']}: {e}")

    async def get_profile(self, user_id: str) -> Optional[dict]:
        """
        Public profile of a user.

        Returns:
            {"id", "username", "display_name", "avatar_url"} or None if unknown
        """
        profiles = await self.get_profiles([user_id])
        return profiles.get(user_id)

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, dict]:
        """
        Profiles for several users in one backend round trip.

        Cache hits are served from Redis; misses are fetched together and cached.
        """
        wanted = list(dict.fromkeys(str(uid) for uid in user_ids))
        found: Dict[str, dict] = {}
        missing = []

        for user_id in wanted:
            cached = await self._cached(user_id)
            if cached:
                found[user_id] = cached
            else:
                missing.append(user_id)

        if missing:
            for user in await self.user_repo.get_profiles(missing):
                profile = user.to_profile()
                found[user.id] = profile
                await self._store(profile)

        return found

    @staticmethod
    def name_of(profile: Optional[dict]) -> str:
        """Name to show for a profile in notifications."""
        if not profile:
            return "Unknown User"
        return profile.get("display_name") or profile.get("username") or "Unknown User"
