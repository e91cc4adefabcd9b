"""
Pydantic schemas for public profiles.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    """Public profile of a user as shown next to messages and conversations."""

    id: str = Field(..., description="User ID")
    username: Optional[str] = Field(None, description="Unique handle")
    display_name: Optional[str] = Field(None, description="Display name")
    avatar_url: Optional[str] = Field(None, description="Profile image URL")

    model_config = ConfigDict(from_attributes=True)
