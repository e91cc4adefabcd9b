"""
Message and MessageReaction models.

Messages are soft-deleted; their rows keep id and ordering position.
Reactions are capped per (message, user) by the reaction service, not by
a database constraint.
"""
import enum
from datetime import datetime
from typing import List

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    JSON,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from dm_core.models.base import Base, UUIDMixin


class MediaType(str, enum.Enum):
    """Enum for attached media kinds."""
    IMAGE = "image"
    VIDEO = "video"
    GIF = "gif"
    NONE = "none"


class Message(Base, UUIDMixin):
    """
    Message in a direct conversation.

    Lifecycle: created -> edited (any number of times, within the edit
    window) -> deleted (terminal, soft).
    """

    __tablename__ = "messages"

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Conversation this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User who sent the message"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Message text (may be empty when media is attached)"
    )

    media_urls: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Ordered list of already-uploaded media URLs"
    )

    media_type: Mapped[MediaType] = mapped_column(
        SQLEnum(MediaType, name="media_type", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MediaType.NONE,
        doc="Kind of attached media"
    )

    # Sequence number for deterministic ordering
    sequence_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        doc="Monotonically increasing sequence number per conversation"
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether the recipient has read the message"
    )

    is_edited: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether the message has been edited"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        doc="Assigned by the store at write time, strictly increasing per conversation"
    )

    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the content was last edited"
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Soft delete timestamp"
    )

    deleted_by: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        doc="User who deleted the message"
    )

    __table_args__ = (
        UniqueConstraint("conversation_id", "sequence_number", name="uq_conversation_sequence"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        content_preview = self.content[:50] if self.content else f"<{self.media_type}>"
        return f"<Message(id={self.id}, content='{content_preview}')>"


class MessageReaction(Base, UUIDMixin):
    """
    Emoji reaction to a message.

    The same user may react with the same emoji more than once; only the
    count of live rows per (message, user) is bounded.
    """

    __tablename__ = "message_reactions"

    message_id: Mapped[str] = mapped_column(
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Message ID"
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Reacting user ID"
    )

    emoji: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="Emoji reaction (e.g., '👍', '❤️', '😂')"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="Strictly increasing per (message, user); drives eviction order"
    )

    def __repr__(self) -> str:
        return f"<MessageReaction(message_id={self.message_id}, user_id={self.user_id}, emoji={self.emoji})>"


Index("idx_messages_conversation_created",
      Message.conversation_id,
      Message.created_at,
      Message.sequence_number)

Index("idx_message_reactions_pair",
      MessageReaction.message_id,
      MessageReaction.user_id,
      MessageReaction.created_at)
