"""
Pydantic schemas for request/response validation.
"""
from dm_core.schemas.profile import ProfileResponse
from dm_core.schemas.reaction import ReactionCreate, ReactionResponse, ReactionRemovedResponse
from dm_core.schemas.message import MessageCreate, MessageUpdate, MessageResponse, MarkReadResponse
from dm_core.schemas.conversation import ConversationCreate, ConversationCreated, ConversationSummary
from dm_core.schemas.block import BlockStatusResponse, BlockedUserResponse

__all__ = [
    "ProfileResponse",
    "ReactionCreate",
    "ReactionResponse",
    "ReactionRemovedResponse",
    "MessageCreate",
    "MessageUpdate",
    "MessageResponse",
    "MarkReadResponse",
    "ConversationCreate",
    "ConversationCreated",
    "ConversationSummary",
    "BlockStatusResponse",
    "BlockedUserResponse",
]
