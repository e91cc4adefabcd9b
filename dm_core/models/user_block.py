"""
UserBlock model for user blocking functionality.

A block edge is directional: A blocking B says nothing about B blocking A.
Sends are refused if an edge exists in either direction.
"""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from dm_core.models.base import Base


class UserBlock(Base):
    """Directional block edge between two users."""

    __tablename__ = "user_blocks"

    blocker_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User who is blocking"
    )

    blocked_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User who is being blocked"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="When the block was created"
    )

    def __repr__(self) -> str:
        return f"<UserBlock(blocker_id={self.blocker_id}, blocked_id={self.blocked_id})>"


Index("idx_user_blocks_blocked", UserBlock.blocked_id)
