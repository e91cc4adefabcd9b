"""
Unit tests for ConversationService.
"""
import pytest
from sqlalchemy import func, select

from dm_core.core.exceptions import ConversationNotFound, NotParticipant, SelfConversation, UserNotFound
from dm_core.models import Conversation, ConversationParticipant, Message, MessageReaction


class TestGetOrCreateConversation:
    """Test cases for conversation discovery."""

    async def test_creates_conversation_with_both_participants(self, conversation_service, db_session, alice, bob):
        conversation_id = await conversation_service.get_or_create_conversation(alice.id, bob.id)

        result = await db_session.execute(
            select(ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id == conversation_id)
        )
        assert set(result.scalars().all()) == {alice.id, bob.id}

    async def test_idempotent_in_either_order(self, conversation_service, db_session, alice, bob):
        first = await conversation_service.get_or_create_conversation(alice.id, bob.id)
        second = await conversation_service.get_or_create_conversation(bob.id, alice.id)
        third = await conversation_service.get_or_create_conversation(alice.id, bob.id)

        assert first == second == third
        count = await db_session.scalar(select(func.count()).select_from(Conversation))
        assert count == 1

    async def test_different_pairs_get_different_conversations(self, conversation_service, alice, bob, carol):
        with_bob = await conversation_service.get_or_create_conversation(alice.id, bob.id)
        with_carol = await conversation_service.get_or_create_conversation(alice.id, carol.id)

        assert with_bob != with_carol

    async def test_self_conversation_rejected(self, conversation_service, alice):
        with pytest.raises(SelfConversation):
            await conversation_service.get_or_create_conversation(alice.id, alice.id)

    async def test_unknown_other_user_rejected(self, conversation_service, db_session, alice):
        with pytest.raises(UserNotFound):
            await conversation_service.get_or_create_conversation(alice.id, "no-such-user")

        assert await db_session.scalar(select(func.count()).select_from(Conversation)) == 0

    async def test_lost_creation_race_returns_winner(self, conversation_service, db_session, mocker, alice, bob):
        winner = await conversation_service.get_or_create_conversation(alice.id, bob.id)

        # Simulate a request that checked before the winner committed
        mocker.patch.object(conversation_service, "_find_existing", return_value=None)

        assert await conversation_service.get_or_create_conversation(bob.id, alice.id) == winner
        count = await db_session.scalar(select(func.count()).select_from(Conversation))
        assert count == 1


class TestListConversations:
    """Test cases for the inbox listing."""

    async def test_summary_contents(self, conversation_service, message_service, conversation_id, alice, bob):
        await message_service.send_message(conversation_id, alice.id, "first")
        await message_service.send_message(conversation_id, alice.id, "second")

        summaries = await conversation_service.list_conversations(bob.id)

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary["id"] == conversation_id
        assert summary["other_participant"]["username"] == "alice"
        assert summary["last_message"]["content"] == "second"
        assert summary["unread_count"] == 2

    async def test_last_message_skips_deleted(self, conversation_service, message_service, conversation_id, alice):
        await message_service.send_message(conversation_id, alice.id, "kept")
        latest = await message_service.send_message(conversation_id, alice.id, "gone")
        await message_service.delete_message(latest.id, alice.id)

        summaries = await conversation_service.list_conversations(alice.id)
        assert summaries[0]["last_message"]["content"] == "kept"

    async def test_most_recently_active_first(self, conversation_service, message_service, clock, alice, bob, carol):
        with_bob = await conversation_service.get_or_create_conversation(alice.id, bob.id)
        clock.advance(1)
        with_carol = await conversation_service.get_or_create_conversation(alice.id, carol.id)

        ids = [s["id"] for s in await conversation_service.list_conversations(alice.id)]
        assert ids == [with_carol, with_bob]

        clock.advance(1)
        await message_service.send_message(with_bob, bob.id, "bump")

        ids = [s["id"] for s in await conversation_service.list_conversations(alice.id)]
        assert ids == [with_bob, with_carol]

    async def test_empty_for_new_user(self, conversation_service, carol):
        assert await conversation_service.list_conversations(carol.id) == []


class TestGetConversation:

    async def test_outsider_rejected(self, conversation_service, conversation_id, carol):
        with pytest.raises(NotParticipant):
            await conversation_service.get_conversation(conversation_id, carol.id)

    async def test_missing_conversation(self, conversation_service, alice):
        with pytest.raises(ConversationNotFound):
            await conversation_service.get_conversation("does-not-exist", alice.id)


class TestDeleteConversation:
    """Test cases for cascade deletion."""

    async def test_removes_messages_and_reactions(
        self,
        conversation_service,
        message_service,
        reaction_service,
        db_session,
        conversation_id,
        alice,
        bob
    ):
        message = await message_service.send_message(conversation_id, alice.id, "hello")
        await reaction_service.add_reaction(message.id, bob.id, "👍")

        await conversation_service.delete_conversation(conversation_id, bob.id)

        for model in (Conversation, ConversationParticipant, Message, MessageReaction):
            assert await db_session.scalar(select(func.count()).select_from(model)) == 0

    async def test_missing_conversation(self, conversation_service, alice):
        with pytest.raises(ConversationNotFound):
            await conversation_service.delete_conversation("does-not-exist", alice.id)

    async def test_outsider_rejected(self, conversation_service, conversation_id, carol):
        with pytest.raises(NotParticipant):
            await conversation_service.delete_conversation(conversation_id, carol.id)

    async def test_pair_can_start_over(self, conversation_service, conversation_id, alice, bob):
        await conversation_service.delete_conversation(conversation_id, alice.id)

        new_id = await conversation_service.get_or_create_conversation(alice.id, bob.id)
        assert new_id != conversation_id
