"""
Pydantic schemas for reactions.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReactionCreate(BaseModel):
    """Schema for adding a reaction to a message."""

    emoji: str = Field(..., min_length=1, max_length=32, description="Emoji reaction")

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v: str) -> str:
        """Basic emoji validation."""
        if not v.strip():
            raise ValueError("Emoji cannot be empty")
        return v.strip()

    model_config = ConfigDict(json_schema_extra={"example": {"emoji": "👍"}})


class ReactionResponse(BaseModel):
    """Schema for reaction response."""

    id: str
    message_id: str
    user_id: str
    emoji: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReactionRemovedResponse(BaseModel):
    removed: bool
