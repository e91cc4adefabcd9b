"""
Pydantic schemas for conversation requests and responses.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dm_core.schemas.message import MessageResponse
from dm_core.schemas.profile import ProfileResponse


class ConversationCreate(BaseModel):
    """Schema for opening (or finding) the conversation with another user."""

    other_user_id: str = Field(..., min_length=1, description="The other participant")

    model_config = ConfigDict(
        json_schema_extra={"example": {"other_user_id": "123e4567-e89b-12d3-a456-426614174000"}}
    )


class ConversationCreated(BaseModel):
    conversation_id: str


class ConversationSummary(BaseModel):
    """Conversation as shown in the inbox."""

    id: str
    other_participant: ProfileResponse
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
