"""
Notification and NotificationPreferences models.

Used by the database notification sink to store "new message" alerts for
the platform's notification center.
"""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dm_core.models.base import Base, UUIDMixin


class Notification(Base, UUIDMixin):
    """Stored alert for a recipient."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Recipient"
    )

    sender_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        doc="User whose action triggered the notification"
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    action_link: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="In-app link opened when the notification is clicked"
    )

    action_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        doc="Kind of action, e.g. 'message'"
    )

    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, action_type={self.action_type})>"


class NotificationPreferences(Base):
    """Per-user delivery preferences."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Owner of these preferences"
    )

    push_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Whether in-app notifications are stored for this user"
    )

    email_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether email notifications are wanted"
    )


Index("idx_notifications_user_created", Notification.user_id, Notification.created_at)
