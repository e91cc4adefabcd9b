"""
Notification dispatcher and sinks.

Delivery of "new message" alerts is best-effort: the dispatcher never lets a
sink failure reach the caller, and nothing is retried.
"""
import logging
from typing import Any, Callable, Dict, Optional, Protocol

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.config import settings
from dm_core.core.exceptions import DeliveryError
from dm_core.repositories.notification_repo import NotificationRepository
from dm_core.utils.datetime_utils import Clock, utc_now

logger = logging.getLogger(__name__)

MEDIA_PREVIEW = "Sent a media file"


def build_preview(content: Optional[str], limit: Optional[int] = None) -> str:
    """
    Short text shown in a notification for a message.

    Args:
        content: Message content (may be empty for media-only messages)
        limit: Maximum characters kept before "..." is appended

    Example:
        >>> build_preview("x" * 60, 50)
        'xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx...'
    """
    limit = limit or settings.preview_length
    content = (content or "").strip()
    if not content:
        return MEDIA_PREVIEW
    if len(content) > limit:
        return content[:limit] + "..."
    return content


def build_payload(
    conversation_id: str,
    sender_id: Optional[str],
    sender_display_name: str,
    preview: str
) -> Dict[str, Any]:
    """Notification body shared by all sinks."""
    return {
        "title": f"New message from {sender_display_name}",
        "message": preview,
        "sender_id": sender_id,
        "conversation_id": conversation_id,
        "action_link": f"/messages/{conversation_id}",
        "action_type": "message",
    }


class NotificationSink(Protocol):
    """Anything that can deliver a notification payload to a user."""

    async def deliver(self, target_user_id: str, payload: Dict[str, Any]) -> None:
        ...


class NullNotificationSink:
    """Discards every notification."""

    async def deliver(self, target_user_id: str, payload: Dict[str, Any]) -> None:
        logger.debug(f"Notification for {target_user_id} discarded (no sink configured)")


class DatabaseNotificationSink:
    """
    Stores notifications in the notifications table.

    Uses its own session so a failed insert cannot affect the caller's
    transaction. Recipients with push disabled get nothing; a user is never
    notified about their own action.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], clock: Clock = utc_now):
        self.session_factory = session_factory
        self.clock = clock

    async def deliver(self, target_user_id: str, payload: Dict[str, Any]) -> None:
        if payload.get("sender_id") == target_user_id:
            logger.debug(f"Skipping self-notification for {target_user_id}")
            return

        try:
            async with self.session_factory() as session:
                repo = NotificationRepository(session)
                preferences = await repo.get_preferences(target_user_id)
                if preferences is not None and not preferences.push_enabled:
                    logger.debug(f"Notifications disabled for {target_user_id}")
                    return

                await repo.create(
                    user_id=target_user_id,
                    sender_id=payload.get("sender_id"),
                    title=payload["title"],
                    message=payload["message"],
                    action_link=payload.get("action_link"),
                    action_type=payload.get("action_type"),
                    read=False,
                    created_at=self.clock(),
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise DeliveryError(f"Could not store notification for {target_user_id}: {e}") from e


class WebhookNotificationSink:
    """POSTs notifications as JSON to an external delivery service."""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    async def deliver(self, target_user_id: str, payload: Dict[str, Any]) -> None:
        body = {"user_id": target_user_id, **payload}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise DeliveryError(f"Notification webhook timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise DeliveryError(f"Notification webhook returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise DeliveryError(f"Notification webhook request failed: {e}") from e


class NotificationDispatcher:
    """Fire-and-forget front end over a NotificationSink."""

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    async def notify(
        self,
        target_user_id: str,
        conversation_id: str,
        sender_display_name: str,
        preview: str,
        sender_id: Optional[str] = None
    ) -> bool:
        """
        Deliver a "new message" alert. Never raises.

        Returns:
            True if the sink accepted the notification
        """
        payload = build_payload(conversation_id, sender_id, sender_display_name, preview)
        try:
            await self.sink.deliver(target_user_id, payload)
            return True
        except DeliveryError as e:
            logger.warning(f"Notification to {target_user_id} not delivered: {e}")
        except Exception:
            logger.exception(f"Unexpected error notifying {target_user_id}")
        return False


def get_notification_sink(session_factory: Optional[Callable[[], AsyncSession]] = None) -> NotificationSink:
    """
    Build the sink selected by settings.notification_backend.

    Raises:
        ValueError: Unknown backend, or webhook backend without a URL
    """
    backend = settings.notification_backend.lower()

    if backend == "none":
        return NullNotificationSink()

    if backend == "webhook":
        if not settings.notification_webhook_url:
            raise ValueError("notification_webhook_url is required for the webhook backend")
        return WebhookNotificationSink(settings.notification_webhook_url, settings.notification_timeout)

    if backend == "database":
        if session_factory is None:
            from dm_core.core.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        return DatabaseNotificationSink(session_factory)

    raise ValueError(f"Unknown notification backend '{settings.notification_backend}'")
