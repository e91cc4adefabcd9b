"""
Pydantic schemas for user blocking.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BlockStatusResponse(BaseModel):
    """Block edges between the caller and another user."""

    user_id: str
    blocked_by_me: bool
    blocked_me: bool


class BlockedUserResponse(BaseModel):
    blocked_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
