"""
Pydantic schemas for message requests and responses.
Handles validation for message-related API endpoints.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dm_core.models.message import MediaType
from dm_core.schemas.profile import ProfileResponse
from dm_core.schemas.reaction import ReactionResponse


# ============================================================================
# Request Schemas
# ============================================================================

class MessageCreate(BaseModel):
    """Schema for sending a new message. Emptiness is checked by the service."""

    conversation_id: str = Field(..., description="Conversation ID")
    content: Optional[str] = Field(None, max_length=10000, description="Message text content")
    media_urls: List[str] = Field(default_factory=list, max_length=10, description="Already-uploaded media URLs")
    media_type: Optional[MediaType] = Field(None, description="Media kind; inferred from the URLs when omitted")

    @field_validator("media_urls")
    @classmethod
    def strip_urls(cls, v: List[str]) -> List[str]:
        """Drop blank URLs."""
        return [url.strip() for url in v if url and url.strip()]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "conversation_id": "123e4567-e89b-12d3-a456-426614174000",
                "content": "Hello, how are you?",
                "media_urls": [],
                "media_type": None
            }
        }
    )


class MessageUpdate(BaseModel):
    """Schema for editing a message."""

    content: str = Field(..., max_length=10000, description="Updated message content")

    model_config = ConfigDict(
        json_schema_extra={"example": {"content": "Updated message content"}}
    )


# ============================================================================
# Response Schemas
# ============================================================================

class MessageResponse(BaseModel):
    """Schema for message response."""

    id: str
    conversation_id: str
    sender_id: str
    sender: Optional[ProfileResponse] = None
    content: str
    media_urls: List[str] = Field(default_factory=list)
    media_type: MediaType = MediaType.NONE
    sequence_number: int
    is_read: bool = False
    is_edited: bool = False
    created_at: datetime
    edited_at: Optional[datetime] = None
    reactions: List[ReactionResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    """Schema for mark-read response."""

    updated_count: int = Field(..., description="Number of messages marked read")
