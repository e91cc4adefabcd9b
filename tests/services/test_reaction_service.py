"""
Unit tests for ReactionService and reaction compaction.
"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from dm_core.core.exceptions import MessageDeleted, MessageNotFound, NotParticipant
from dm_core.models import MessageReaction
from dm_core.services.reaction_service import ReactionService, compact_reactions


@pytest.fixture
async def message(message_service, conversation_id, alice):
    return await message_service.send_message(conversation_id, alice.id, "react to this")


async def _emojis(reaction_service, message_id, user_id):
    reactions = await reaction_service.list_reactions(message_id)
    return [r.emoji for r in reactions if r.user_id == user_id]


class TestCompactReactions:
    """The pure reconciliation step."""

    def test_groups_within_cap_untouched(self):
        kept, evicted = compact_reactions({("m1", "u1"): ["a", "b"], ("m1", "u2"): ["c"]}, 2)

        assert kept == ["a", "b", "c"]
        assert evicted == []

    def test_oldest_evicted_first(self):
        kept, evicted = compact_reactions({("m1", "u1"): ["r1", "r2", "r3", "r4"]}, 2)

        assert kept == ["r3", "r4"]
        assert evicted == ["r1", "r2"]

    def test_groups_are_independent(self):
        kept, evicted = compact_reactions(
            {("m1", "u1"): ["a1", "a2", "a3"], ("m1", "u2"): ["b1", "b2", "b3"]},
            2
        )

        assert kept == ["a2", "a3", "b2", "b3"]
        assert evicted == ["a1", "b1"]

    def test_empty_mapping(self):
        assert compact_reactions({}, 2) == ([], [])


class TestReactionCap:

    async def test_explicit_cap_is_honoured(self, db_session, clock, message, bob):
        service = ReactionService(db_session, clock, cap=1)

        await service.add_reaction(message.id, bob.id, "👍")
        await service.add_reaction(message.id, bob.id, "❤️")

        assert await _emojis(service, message.id, bob.id) == ["❤️"]

    @pytest.mark.parametrize("cap", [0, -1])
    def test_cap_below_one_rejected(self, db_session, cap):
        with pytest.raises(ValueError):
            ReactionService(db_session, cap=cap)


class TestAddReaction:

    async def test_third_reaction_evicts_oldest(self, reaction_service, message, bob):
        await reaction_service.add_reaction(message.id, bob.id, "👍")
        await reaction_service.add_reaction(message.id, bob.id, "❤️")
        await reaction_service.add_reaction(message.id, bob.id, "😂")

        assert await _emojis(reaction_service, message.id, bob.id) == ["❤️", "😂"]

    async def test_cap_holds_after_many_adds(self, reaction_service, db_session, message, alice, bob):
        for emoji in ["a", "b", "c", "d", "e"]:
            await reaction_service.add_reaction(message.id, bob.id, emoji)
            await reaction_service.add_reaction(message.id, alice.id, emoji)

        for user in (alice, bob):
            count = await db_session.scalar(
                select(func.count())
                .select_from(MessageReaction)
                .where(MessageReaction.message_id == message.id, MessageReaction.user_id == user.id)
            )
            assert count == 2

    async def test_same_emoji_twice_counts_twice(self, reaction_service, message, bob):
        await reaction_service.add_reaction(message.id, bob.id, "👍")
        await reaction_service.add_reaction(message.id, bob.id, "👍")

        assert await _emojis(reaction_service, message.id, bob.id) == ["👍", "👍"]

    async def test_users_do_not_evict_each_other(self, reaction_service, message, alice, bob):
        await reaction_service.add_reaction(message.id, alice.id, "1")
        await reaction_service.add_reaction(message.id, alice.id, "2")
        await reaction_service.add_reaction(message.id, bob.id, "3")

        assert await _emojis(reaction_service, message.id, alice.id) == ["1", "2"]
        assert await _emojis(reaction_service, message.id, bob.id) == ["3"]

    async def test_outsider_rejected(self, reaction_service, message, carol):
        with pytest.raises(NotParticipant):
            await reaction_service.add_reaction(message.id, carol.id, "👀")

    async def test_deleted_message_rejected(self, reaction_service, message_service, message, alice, bob):
        await message_service.delete_message(message.id, alice.id)

        with pytest.raises(MessageDeleted):
            await reaction_service.add_reaction(message.id, bob.id, "👍")

    async def test_missing_message(self, reaction_service, bob):
        with pytest.raises(MessageNotFound):
            await reaction_service.add_reaction("does-not-exist", bob.id, "👍")

    async def test_blocks_do_not_gate_reactions(self, reaction_service, block_service, message, alice, bob):
        await block_service.block(alice.id, bob.id)

        reaction = await reaction_service.add_reaction(message.id, bob.id, "👍")

        assert reaction.emoji == "👍"


class TestRemoveReaction:

    async def test_removes_most_recent_match(self, reaction_service, message, bob):
        first = await reaction_service.add_reaction(message.id, bob.id, "👍")
        await reaction_service.add_reaction(message.id, bob.id, "👍")

        assert await reaction_service.remove_reaction(message.id, bob.id, "👍") is True

        remaining = await reaction_service.list_reactions(message.id)
        assert [r.id for r in remaining] == [first.id]

    async def test_nothing_to_remove(self, reaction_service, message, bob):
        assert await reaction_service.remove_reaction(message.id, bob.id, "👍") is False

    async def test_only_own_reactions_removed(self, reaction_service, message, alice, bob):
        await reaction_service.add_reaction(message.id, bob.id, "👍")

        assert await reaction_service.remove_reaction(message.id, alice.id, "👍") is False
        assert await _emojis(reaction_service, message.id, bob.id) == ["👍"]


class TestListReactions:

    async def test_compacts_overflow_left_by_race(self, reaction_service, db_session, clock, message, bob):
        # Three rows for one pair, as two interleaved add_reaction calls can leave
        for i, emoji in enumerate(["1", "2", "3"]):
            db_session.add(MessageReaction(
                message_id=message.id,
                user_id=bob.id,
                emoji=emoji,
                created_at=clock.now + timedelta(seconds=i),
            ))
        await db_session.commit()

        reactions = await reaction_service.list_reactions(message.id)

        assert [r.emoji for r in reactions] == ["2", "3"]
        count = await db_session.scalar(select(func.count()).select_from(MessageReaction))
        assert count == 2

    async def test_outsider_rejected(self, reaction_service, message, carol):
        with pytest.raises(NotParticipant):
            await reaction_service.list_reactions(message.id, actor_id=carol.id)
