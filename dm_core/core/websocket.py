"""
WebSocket manager for real-time messaging.
Bridges Socket.IO clients to the LiveUpdateChannel.
"""
import logging
from typing import Any, Callable, Dict, Optional

import socketio
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.config import settings
from dm_core.core.live_updates import LiveUpdateChannel, Subscription, live_updates
from dm_core.core.security import decode_access_token
from dm_core.repositories.conversation_repo import ConversationRepository

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    WebSocket connection manager using Socket.IO.

    Each socket that joins a conversation holds its own subscription on the
    live update channel; events are emitted to that socket only as
    'new_message'.
    """

    def __init__(
        self,
        channel: LiveUpdateChannel = live_updates,
        session_factory: Optional[Callable[[], AsyncSession]] = None
    ):
        cors_origins = settings.get_allowed_origins_list() or "*"

        self.sio = socketio.AsyncServer(
            async_mode='asgi',
            cors_allowed_origins=cors_origins,
            # Library logging is noisy at ERROR level; our logger covers the events we care about
            logger=False,
            engineio_logger=False,
            ping_timeout=settings.ws_heartbeat_interval,
            ping_interval=settings.ws_heartbeat_interval // 2,
        )
        self.channel = channel
        self._session_factory = session_factory

        # {sid: user_id}
        self.connections: Dict[str, str] = {}

        # {sid: {conversation_id: Subscription}}
        self.subscriptions: Dict[str, Dict[str, Subscription]] = {}

        self.sio.on('connect', self.handle_connect)
        self.sio.on('disconnect', self.handle_disconnect)
        self.sio.on('join_conversation', self.handle_join_conversation)
        self.sio.on('leave_conversation', self.handle_leave_conversation)

    @property
    def session_factory(self) -> Callable[[], AsyncSession]:
        if self._session_factory is None:
            from dm_core.core.database import AsyncSessionLocal
            self._session_factory = AsyncSessionLocal
        return self._session_factory

    async def handle_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> bool:
        """
        Handle client connection.

        Client must provide {'token': <bearer token>} in the handshake auth.
        """
        token = auth.get('token') if auth else None
        if not token:
            logger.warning(f"Connection rejected - no token: {sid}")
            return False

        try:
            payload = decode_access_token(token)
        except HTTPException as e:
            logger.warning(f"Connection rejected - {e.detail}: {sid}")
            return False

        user_id = str(payload.get('sub') or payload.get('id'))
        self.connections[sid] = user_id
        logger.info(f"Client connected: {sid} (user: {user_id})")
        return True

    async def handle_disconnect(self, sid: str, *args) -> None:
        """Drop every subscription held by the socket."""
        user_id = self.connections.pop(sid, None)
        subs = self.subscriptions.pop(sid, {})
        for subscription in subs.values():
            subscription.unsubscribe()
        logger.info(f"Client disconnected: {sid} (user: {user_id}, left {len(subs)} conversations)")

    async def handle_join_conversation(self, sid: str, data: Dict[str, Any]) -> None:
        """
        Subscribe the socket to a conversation's new messages.

        Expected data: {'conversation_id': '<id>'}
        """
        conversation_id = (data or {}).get('conversation_id')
        user_id = self.connections.get(sid)

        if not user_id:
            await self.sio.emit('error', {'message': 'Unauthorized'}, to=sid)
            return
        if not conversation_id:
            await self.sio.emit('error', {'message': 'conversation_id is required'}, to=sid)
            return

        async with self.session_factory() as db:
            is_member = await ConversationRepository(db).is_participant(conversation_id, user_id)

        if not is_member:
            logger.warning(f"User {user_id} not a participant of conversation {conversation_id}")
            await self.sio.emit('error', {'message': 'Not a participant of this conversation'}, to=sid)
            return

        socket_subs = self.subscriptions.setdefault(sid, {})
        if conversation_id not in socket_subs:
            socket_subs[conversation_id] = self.channel.subscribe(
                conversation_id,
                self._emitter(sid)
            )
            logger.info(f"User {user_id} joined conversation {conversation_id}")

        await self.sio.emit('joined_conversation', {'conversation_id': conversation_id}, to=sid)

    async def handle_leave_conversation(self, sid: str, data: Dict[str, Any]) -> None:
        """
        Unsubscribe the socket from a conversation.

        Expected data: {'conversation_id': '<id>'}
        """
        conversation_id = (data or {}).get('conversation_id')
        subscription = self.subscriptions.get(sid, {}).pop(conversation_id, None)
        if subscription:
            subscription.unsubscribe()
        if sid in self.subscriptions and not self.subscriptions[sid]:
            del self.subscriptions[sid]

        await self.sio.emit('left_conversation', {'conversation_id': conversation_id}, to=sid)

    def _emitter(self, sid: str):
        async def emit_new_message(message: Dict[str, Any]) -> None:
            await self.sio.emit('new_message', message, to=sid)
        return emit_new_message

    def get_asgi_app(self, fastapi_app):
        """
        Get the ASGI app for Socket.IO wrapping FastAPI.

        Socket.IO wraps FastAPI, not the other way around; clients connect to
        /socket.io/ and every other path falls through to FastAPI.
        """
        return socketio.ASGIApp(self.sio, fastapi_app)


# Global connection manager instance
connection_manager = ConnectionManager()
