"""
Tests for bearer token handling and the identity provider.
"""
from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dm_core.core.identity import IdentityProvider
from dm_core.core.security import SecurityException, create_access_token


class TestCurrentActor:

    def test_valid_token(self):
        token = create_access_token({"sub": "user-1"})

        assert IdentityProvider.current_actor(f"Bearer {token}") == "user-1"

    def test_id_claim_accepted(self):
        token = create_access_token({"id": "user-2"})

        assert IdentityProvider.current_actor(f"bearer {token}") == "user-2"

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer"])
    def test_malformed_header(self, header):
        with pytest.raises(SecurityException) as exc_info:
            IdentityProvider.current_actor(header)

        assert exc_info.value.status_code == 401

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(SecurityException, match="expired"):
            IdentityProvider.current_actor(f"Bearer {token}")

    def test_tampered_token(self):
        token = create_access_token({"sub": "user-1"})

        with pytest.raises(SecurityException):
            IdentityProvider.current_actor(f"Bearer {token[:-2]}xx")

    def test_token_without_subject(self):
        token = create_access_token({"role": "member"})

        with pytest.raises(SecurityException, match="user ID"):
            IdentityProvider.current_actor(f"Bearer {token}")


class TestProfiles:

    async def test_get_profile(self, identity, alice):
        profile = await identity.get_profile(alice.id)

        assert profile == {
            "id": alice.id,
            "username": "alice",
            "display_name": "Alice",
            "avatar_url": None,
        }

    async def test_unknown_user(self, identity):
        assert await identity.get_profile("nobody") is None

    async def test_get_profiles_batch(self, identity, alice, bob):
        profiles = await identity.get_profiles([alice.id, bob.id, alice.id, "nobody"])

        assert set(profiles) == {alice.id, bob.id}

    async def test_name_falls_back_to_username(self, identity, carol):
        assert IdentityProvider.name_of(await identity.get_profile(carol.id)) == "carol"
        assert IdentityProvider.name_of(None) == "Unknown User"

    async def test_cache_hit_skips_database(self, db_session, mocker):
        mocker.patch(
            "dm_core.core.identity.get_cached_profile",
            return_value={"id": "u1", "username": "cached", "display_name": None, "avatar_url": None}
        )
        provider = IdentityProvider(db_session)
        lookup = mocker.spy(provider.user_repo, "get_profiles")

        profile = await provider.get_profile("u1")

        assert profile["username"] == "cached"
        lookup.assert_not_called()

    async def test_cache_failure_falls_back_to_database(self, db_session, mocker, alice):
        mocker.patch("dm_core.core.identity.get_cached_profile", side_effect=RedisConnectionError("down"))
        store = mocker.patch("dm_core.core.identity.cache_profile", side_effect=RedisConnectionError("down"))

        profile = await IdentityProvider(db_session).get_profile(alice.id)

        assert profile["username"] == "alice"
        store.assert_awaited_once()
