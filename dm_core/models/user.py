"""
User profile model.

Profiles are owned by the platform's identity layer; the messaging core only
reads them to annotate conversations, messages and notifications.
"""
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from dm_core.models.base import Base, UUIDMixin


class User(Base, UUIDMixin):
    """Public profile of a platform user."""

    __tablename__ = "profiles"

    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique handle"
    )

    display_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Name shown in conversation lists and notifications"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Profile image URL"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def to_profile(self) -> dict:
        """Serializable profile dict used by the identity provider and its cache."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
        }

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
