"""
Tests for the Socket.IO bridge to the live update channel.
"""
import pytest

from dm_core.core.live_updates import LiveUpdateChannel
from dm_core.core.security import create_access_token
from dm_core.core.websocket import ConnectionManager


@pytest.fixture
def manager(session_factory, mocker):
    manager = ConnectionManager(channel=LiveUpdateChannel(), session_factory=session_factory)
    mocker.patch.object(manager.sio, "emit", new_callable=mocker.AsyncMock)
    return manager


def _emitted(manager, event):
    return [call for call in manager.sio.emit.await_args_list if call.args[0] == event]


class TestConnectionManager:

    async def test_connect_requires_token(self, manager):
        assert await manager.handle_connect("sid1", {}, None) is False
        assert await manager.handle_connect("sid1", {}, {"token": "garbage"}) is False
        assert manager.connections == {}

    async def test_connect_with_valid_token(self, manager, alice):
        token = create_access_token({"sub": alice.id})

        assert await manager.handle_connect("sid1", {}, {"token": token}) is True
        assert manager.connections["sid1"] == alice.id

    async def test_join_forwards_new_messages(self, manager, message_service, conversation_id, alice, bob):
        await manager.handle_connect("sid-bob", {}, {"token": create_access_token({"sub": bob.id})})
        await manager.handle_join_conversation("sid-bob", {"conversation_id": conversation_id})
        message_service.live_channel = manager.channel

        message = await message_service.send_message(conversation_id, alice.id, "hi bob")

        new_messages = _emitted(manager, "new_message")
        assert len(new_messages) == 1
        assert new_messages[0].args[1]["id"] == message.id
        assert new_messages[0].kwargs["to"] == "sid-bob"
        assert _emitted(manager, "joined_conversation")

    async def test_join_twice_subscribes_once(self, manager, conversation_id, bob):
        await manager.handle_connect("sid-bob", {}, {"token": create_access_token({"sub": bob.id})})
        await manager.handle_join_conversation("sid-bob", {"conversation_id": conversation_id})
        await manager.handle_join_conversation("sid-bob", {"conversation_id": conversation_id})

        assert manager.channel.subscriber_count(conversation_id) == 1

    async def test_outsider_cannot_join(self, manager, conversation_id, carol):
        await manager.handle_connect("sid-carol", {}, {"token": create_access_token({"sub": carol.id})})
        await manager.handle_join_conversation("sid-carol", {"conversation_id": conversation_id})

        assert manager.channel.subscriber_count(conversation_id) == 0
        assert _emitted(manager, "error")

    async def test_unauthenticated_join_rejected(self, manager, conversation_id):
        await manager.handle_join_conversation("unknown", {"conversation_id": conversation_id})

        assert manager.channel.subscriber_count(conversation_id) == 0
        assert _emitted(manager, "error")

    async def test_leave_and_disconnect_unsubscribe(self, manager, conversation_id, alice, bob):
        await manager.handle_connect("sid-a", {}, {"token": create_access_token({"sub": alice.id})})
        await manager.handle_connect("sid-b", {}, {"token": create_access_token({"sub": bob.id})})
        await manager.handle_join_conversation("sid-a", {"conversation_id": conversation_id})
        await manager.handle_join_conversation("sid-b", {"conversation_id": conversation_id})

        await manager.handle_leave_conversation("sid-a", {"conversation_id": conversation_id})
        assert manager.channel.subscriber_count(conversation_id) == 1

        await manager.handle_disconnect("sid-b")
        assert manager.channel.subscriber_count(conversation_id) == 0
        assert manager.connections == {"sid-a": alice.id}
