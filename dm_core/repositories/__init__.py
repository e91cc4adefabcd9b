"""
Repository layer exports.
Provides database access layer for the application.
"""
from dm_core.repositories.base import BaseRepository, translate_backend_errors
from dm_core.repositories.message_repo import (
    MessageRepository,
    MessageReactionRepository
)
from dm_core.repositories.conversation_repo import ConversationRepository
from dm_core.repositories.block_repo import UserBlockRepository
from dm_core.repositories.user_repo import UserRepository
from dm_core.repositories.notification_repo import NotificationRepository

__all__ = [
    "BaseRepository",
    "translate_backend_errors",
    "MessageRepository",
    "MessageReactionRepository",
    "ConversationRepository",
    "UserBlockRepository",
    "UserRepository",
    "NotificationRepository",
]
