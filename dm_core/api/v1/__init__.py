"""
API v1 router exports.
Provides API endpoint routers.
"""
from dm_core.api.v1 import blocks, conversations, messages

__all__ = [
    "blocks",
    "conversations",
    "messages",
]
