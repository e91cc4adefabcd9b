"""
Message service containing business logic for messaging operations.
Handles sending, editing, soft deletion, listing and read state.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.config import settings
from dm_core.core.exceptions import (
    Blocked,
    ConversationNotFound,
    EditWindowExpired,
    EmptyMessage,
    MessageDeleted,
    MessageNotFound,
    NotOwner,
    NotParticipant,
)
from dm_core.core.identity import IdentityProvider
from dm_core.core.live_updates import LiveUpdateChannel
from dm_core.core.notifications import NotificationDispatcher, build_preview
from dm_core.models.conversation import Conversation
from dm_core.models.message import Message, MessageReaction, MediaType
from dm_core.repositories.base import commit
from dm_core.repositories.conversation_repo import ConversationRepository
from dm_core.repositories.message_repo import MessageRepository, MessageReactionRepository
from dm_core.services.block_service import BlockService
from dm_core.services.reaction_service import compact_reactions, reaction_to_dict
from dm_core.utils.datetime_utils import Clock, ensure_utc, to_iso_utc, utc_now
from dm_core.utils.validators import normalize_content, resolve_media_type

logger = logging.getLogger(__name__)


def message_to_dict(
    message: Message,
    sender: Optional[dict] = None,
    reactions: Optional[List[MessageReaction]] = None
) -> Dict[str, Any]:
    """
    Plain dict view of a message for API responses and summaries.

    Args:
        message: Message instance
        sender: Sender profile, if already looked up
        reactions: Live reactions on the message, oldest first
    """
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "sender": sender,
        "content": message.content,
        "media_urls": list(message.media_urls or []),
        "media_type": message.media_type,
        "sequence_number": message.sequence_number,
        "is_read": message.is_read,
        "is_edited": message.is_edited,
        "created_at": ensure_utc(message.created_at),
        "edited_at": ensure_utc(message.edited_at),
        "reactions": [reaction_to_dict(r) for r in (reactions or [])],
    }


def live_payload(message: Message, sender: Optional[dict] = None) -> Dict[str, Any]:
    """JSON-safe new-message event pushed to live subscribers."""
    payload = message_to_dict(message, sender)
    payload["media_type"] = MediaType(message.media_type).value
    payload["created_at"] = to_iso_utc(message.created_at)
    payload["edited_at"] = to_iso_utc(message.edited_at)
    return payload


class MessageService:
    """Service for message operations with business logic."""

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        blocks: BlockService,
        live_channel: LiveUpdateChannel,
        dispatcher: NotificationDispatcher,
        clock: Clock = utc_now,
        edit_window: Optional[int] = None,
        reaction_cap: Optional[int] = None
    ):
        """
        Initialize message service.

        Args:
            db: Database session
            identity: Profile lookup for senders
            blocks: Block registry consulted before every send
            live_channel: Receives one event per inserted message
            dispatcher: Best-effort notification delivery
            clock: Source of the current time
            edit_window: Seconds a message stays editable (default from settings)
            reaction_cap: Live reactions shown per user per message (default from settings)
        """
        self.db = db
        self.identity = identity
        self.blocks = blocks
        self.live_channel = live_channel
        self.dispatcher = dispatcher
        self.clock = clock
        self.edit_window = timedelta(
            seconds=settings.edit_window_seconds if edit_window is None else edit_window
        )
        self.reaction_cap = settings.reaction_cap if reaction_cap is None else reaction_cap
        if self.reaction_cap < 1:
            raise ValueError(f"Reaction cap must be at least 1, got {self.reaction_cap}")
        self.message_repo = MessageRepository(db)
        self.reaction_repo = MessageReactionRepository(db)
        self.conversation_repo = ConversationRepository(db)

    async def _get_conversation_for(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self.conversation_repo.get(conversation_id)
        if not conversation:
            raise ConversationNotFound()
        if user_id not in conversation.participant_ids:
            raise NotParticipant()
        return conversation

    async def _get_own_message(self, message_id: str, actor_id: str) -> Message:
        message = await self.message_repo.get(message_id)
        if not message:
            raise MessageNotFound()
        if message.sender_id != actor_id:
            raise NotOwner()
        return message

    async def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: Optional[str],
        media_urls: Optional[List[str]] = None,
        media_type: Optional[MediaType | str] = None
    ) -> Message:
        """
        Send a message to a conversation.

        Every precondition is checked before anything is written. After the
        commit, notifications to the other participant and the live update
        run concurrently; their failures are logged and never fail the send.

        Args:
            conversation_id: Target conversation
            sender_id: Sending user
            content: Message text (may be empty when media is attached)
            media_urls: Already-uploaded media URLs
            media_type: Kind of media; inferred from the first URL when omitted

        Returns:
            The stored message

        Raises:
            ConversationNotFound: Conversation does not exist
            NotParticipant: Sender is not in the conversation
            EmptyMessage: Neither content nor media
            UnsupportedMedia: Media type unknown or inconsistent with the URLs
            Blocked: A block exists in either direction with the other participant
        """
        conversation = await self._get_conversation_for(conversation_id, sender_id)

        content = normalize_content(content)
        media_urls = [url for url in (media_urls or []) if url]
        if not content and not media_urls:
            raise EmptyMessage()

        resolved_type = resolve_media_type(media_urls, media_type)

        recipients = [pid for pid in conversation.participant_ids if pid != sender_id]
        for recipient_id in recipients:
            status = await self.blocks.is_blocked(sender_id, recipient_id)
            if status.any:
                raise Blocked()

        message = await self.message_repo.create_message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            media_urls=media_urls,
            media_type=resolved_type,
            now=self.clock(),
        )
        await self.conversation_repo.touch(conversation_id, message.created_at)
        await commit(self.db)

        logger.info(f"Message {message.id} sent to conversation {conversation_id} by {sender_id}")

        await self._after_send(message, recipients)
        return message

    async def _after_send(self, message: Message, recipients: List[str]) -> None:
        """Run notifications and the live update concurrently; never raises."""
        try:
            sender = await self.identity.get_profile(message.sender_id)
        except Exception:
            logger.exception(f"Sender profile lookup failed for message {message.id}")
            sender = None

        sender_name = IdentityProvider.name_of(sender)
        preview = build_preview(message.content, settings.preview_length)

        tasks = [
            self.dispatcher.notify(
                target_user_id=recipient_id,
                conversation_id=message.conversation_id,
                sender_display_name=sender_name,
                preview=preview,
                sender_id=message.sender_id,
            )
            for recipient_id in recipients
        ]
        tasks.append(self.live_channel.publish(message.conversation_id, live_payload(message, sender)))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning(
                    f"Post-send side effect failed for message {message.id}: "
                    f"{type(result).__name__}: {result}"
                )

    async def edit_message(self, message_id: str, actor_id: str, new_content: Optional[str]) -> Message:
        """
        Edit a message's text within the edit window.

        Raises:
            MessageNotFound: Message does not exist
            NotOwner: Actor did not send the message
            MessageDeleted: Message was deleted
            EditWindowExpired: More than the edit window has passed since creation
            EmptyMessage: The edit would leave neither content nor media
        """
        message = await self._get_own_message(message_id, actor_id)
        if message.is_deleted:
            raise MessageDeleted()

        now = self.clock()
        if now - ensure_utc(message.created_at) > self.edit_window:
            raise EditWindowExpired()

        content = normalize_content(new_content)
        if not content and not message.media_urls:
            raise EmptyMessage()

        message.content = content
        message.is_edited = True
        message.edited_at = now
        await self.db.flush()
        await commit(self.db)

        logger.info(f"Message {message_id} edited by {actor_id}")
        return message

    async def delete_message(self, message_id: str, actor_id: str) -> None:
        """
        Soft delete a message. Deleting an already deleted message is a no-op.

        Raises:
            MessageNotFound: Message does not exist
            NotOwner: Actor did not send the message
        """
        message = await self._get_own_message(message_id, actor_id)
        if message.is_deleted:
            return

        await self.message_repo.soft_delete(message, actor_id, self.clock())
        await commit(self.db)

        logger.info(f"Message {message_id} deleted by {actor_id}")

    async def _with_details(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """Attach sender profiles and live reactions."""
        profiles = await self.identity.get_profiles({m.sender_id for m in messages})
        grouped = await self.reaction_repo.get_reactions_for_messages([m.id for m in messages])

        by_pair: Dict[tuple, List[MessageReaction]] = {}
        for reactions in grouped.values():
            for reaction in reactions:
                by_pair.setdefault((reaction.message_id, reaction.user_id), []).append(reaction)
        kept, _ = compact_reactions(by_pair, self.reaction_cap)

        live: Dict[str, List[MessageReaction]] = {m.id: [] for m in messages}
        for reaction in kept:
            live[reaction.message_id].append(reaction)

        return [
            message_to_dict(
                message,
                profiles.get(message.sender_id),
                sorted(live[message.id], key=lambda r: ensure_utc(r.created_at))
            )
            for message in messages
        ]

    async def list_messages(self, conversation_id: str, actor_id: str) -> List[Dict[str, Any]]:
        """
        Non-deleted messages of a conversation, oldest first.

        Raises:
            ConversationNotFound: Conversation does not exist
            NotParticipant: Actor is not in the conversation
        """
        await self._get_conversation_for(conversation_id, actor_id)
        messages = await self.message_repo.get_conversation_messages(conversation_id)
        return await self._with_details(messages)

    async def get_message(self, message_id: str, actor_id: str) -> Dict[str, Any]:
        """
        A single message. Deleted messages are reported as missing.

        Raises:
            MessageNotFound: Message does not exist or was deleted
            NotParticipant: Actor is not in the message's conversation
        """
        message = await self.message_repo.get(message_id)
        if not message or message.is_deleted:
            raise MessageNotFound()
        if not await self.conversation_repo.is_participant(message.conversation_id, actor_id):
            raise NotParticipant()

        details = await self._with_details([message])
        return details[0]

    async def mark_read(self, conversation_id: str, actor_id: str) -> int:
        """
        Mark every message the actor received in a conversation as read.

        Returns:
            Number of messages updated
        """
        await self._get_conversation_for(conversation_id, actor_id)
        updated = await self.message_repo.mark_conversation_read(conversation_id, actor_id)
        await commit(self.db)

        if updated:
            logger.debug(f"Marked {updated} messages read in {conversation_id} for {actor_id}")
        return updated
