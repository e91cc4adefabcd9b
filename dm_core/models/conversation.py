"""
Conversation and ConversationParticipant models.

Conversations are strictly two-party. The canonical pair_key makes the
"one conversation per unordered pair" rule hold even under concurrent creation.
"""
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dm_core.models.base import Base, UUIDMixin, TimestampMixin


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    first, second = sorted((str(user_a), str(user_b)))
    return f"{first}:{second}"


class Conversation(Base, UUIDMixin, TimestampMixin):
    """Direct conversation between exactly two users."""

    __tablename__ = "conversations"

    pair_key: Mapped[str] = mapped_column(
        String(80),
        unique=True,
        nullable=False,
        doc="Canonical '<min_id>:<max_id>' of the two participants"
    )

    participants: Mapped[List["ConversationParticipant"]] = relationship(
        back_populates="conversation",
        lazy="selectin",
        order_by="ConversationParticipant.joined_at"
    )

    @property
    def participant_ids(self) -> Tuple[str, ...]:
        return tuple(p.user_id for p in self.participants)

    def other_participant_id(self, user_id: str) -> str | None:
        """The participant that is not user_id (None if user_id is not a participant)."""
        ids = self.participant_ids
        if user_id not in ids:
            return None
        others = [pid for pid in ids if pid != user_id]
        return others[0] if others else None

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, pair_key={self.pair_key})>"


class ConversationParticipant(Base):
    """Link row between a conversation and one of its two participants."""

    __tablename__ = "conversation_participants"

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Conversation ID"
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User ID"
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="participants")

    def __repr__(self) -> str:
        return (
            f"<ConversationParticipant(conversation_id={self.conversation_id}, "
            f"user_id={self.user_id})>"
        )


Index("idx_conversation_participants_user", ConversationParticipant.user_id)
Index("idx_conversations_updated_at", Conversation.updated_at)
