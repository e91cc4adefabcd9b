"""
SQLAlchemy models for the direct messaging core.

All models must be imported here so Base.metadata knows every table.
"""

# Import Base first
from dm_core.models.base import Base, TimestampMixin, UUIDMixin, generate_uuid

# Import all models (order matters for relationships)
from dm_core.models.user import User
from dm_core.models.conversation import Conversation, ConversationParticipant, make_pair_key
from dm_core.models.message import Message, MessageReaction, MediaType
from dm_core.models.user_block import UserBlock
from dm_core.models.notification import Notification, NotificationPreferences

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "generate_uuid",
    # Profiles
    "User",
    # Conversations
    "Conversation",
    "ConversationParticipant",
    "make_pair_key",
    # Messages
    "Message",
    "MessageReaction",
    "MediaType",
    # User blocking
    "UserBlock",
    # Notifications
    "Notification",
    "NotificationPreferences",
]
