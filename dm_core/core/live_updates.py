"""
Live update channel.

In-process fan-out of new-message events to the viewers of a conversation.
Only inserts are published; edits and deletes reach viewers on their next
re-list.
"""
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Union

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by subscribe(); unsubscribing twice is harmless."""

    def __init__(self, channel: "LiveUpdateChannel", conversation_id: str, callback: MessageCallback):
        self._channel = channel
        self.conversation_id = conversation_id
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._channel._remove(self)
            self.active = False

    def __repr__(self) -> str:
        return f"<Subscription(conversation_id={self.conversation_id}, active={self.active})>"


class LiveUpdateChannel:
    """
    Registry of per-conversation subscribers.

    Subscribers are independent: one failing callback does not prevent the
    others from running, and each subscription is removed on its own.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, conversation_id: str, on_new_message: MessageCallback) -> Subscription:
        """
        Register a callback for new messages in a conversation.

        Args:
            conversation_id: Conversation to watch
            on_new_message: Called with the new message payload; may be sync or async

        Returns:
            Subscription whose unsubscribe() removes exactly this registration
        """
        subscription = Subscription(self, str(conversation_id), on_new_message)
        self._subscribers.setdefault(subscription.conversation_id, []).append(subscription)
        logger.debug(f"Subscribed to conversation {conversation_id} ({self.subscriber_count(conversation_id)} total)")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscribers.get(subscription.conversation_id)
        if not subs:
            return
        for i, existing in enumerate(subs):
            if existing is subscription:
                del subs[i]
                break
        if not subs:
            del self._subscribers[subscription.conversation_id]

    def subscriber_count(self, conversation_id: str) -> int:
        return len(self._subscribers.get(str(conversation_id), ()))

    @property
    def conversation_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, conversation_id: str, message: Dict[str, Any]) -> int:
        """
        Deliver a new-message event to every current subscriber.

        Returns:
            Number of callbacks that completed without raising
        """
        subscriptions = list(self._subscribers.get(str(conversation_id), ()))
        if not subscriptions:
            return 0

        results = await asyncio.gather(
            *(self._invoke(sub, message) for sub in subscriptions),
            return_exceptions=True
        )

        delivered = 0
        for sub, result in zip(subscriptions, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Live update callback failed for conversation {conversation_id}: "
                    f"{type(result).__name__}: {result}"
                )
            else:
                delivered += 1
        return delivered

    @staticmethod
    async def _invoke(subscription: Subscription, message: Dict[str, Any]) -> None:
        if not subscription.active:
            return
        result = subscription.callback(message)
        if inspect.isawaitable(result):
            await result


# Process-wide channel shared by the HTTP and Socket.IO layers
live_updates = LiveUpdateChannel()
