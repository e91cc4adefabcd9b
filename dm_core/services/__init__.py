"""
Service layer exports.
Business logic for blocks, conversations, messages and reactions.
"""
from dm_core.services.block_service import BlockService, BlockStatus
from dm_core.services.reaction_service import ReactionService, compact_reactions
from dm_core.services.message_service import MessageService
from dm_core.services.conversation_service import ConversationService

__all__ = [
    "BlockService",
    "BlockStatus",
    "ReactionService",
    "compact_reactions",
    "MessageService",
    "ConversationService",
]
