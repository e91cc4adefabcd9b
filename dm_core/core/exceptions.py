"""
Domain errors for the messaging core.

Every rejected operation raises a subclass of MessagingError before any
write is attempted. The API layer renders them with the HTTP status and
localized message carried by the class.
"""
from typing import Dict, Optional

from fastapi import status


DEFAULT_LANGUAGE = "en"


class MessagingError(Exception):
    """Base class for all messaging core errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "messaging_error"
    messages: Dict[str, str] = {
        "en": "The request could not be completed",
        "ar": "تعذر إتمام الطلب",
    }

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.messages[DEFAULT_LANGUAGE]
        super().__init__(self.detail)

    def localized(self, language: Optional[str] = None) -> str:
        """Return the user-facing message in the requested language, falling back to English."""
        if language and language in self.messages:
            return self.messages[language]
        return self.messages[DEFAULT_LANGUAGE]


class SelfConversation(MessagingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "self_conversation"
    messages = {
        "en": "You cannot start a conversation with yourself",
        "ar": "لا يمكنك بدء محادثة مع نفسك",
    }


class SelfBlock(MessagingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "self_block"
    messages = {
        "en": "You cannot block yourself",
        "ar": "لا يمكنك حظر نفسك",
    }


class NotParticipant(MessagingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_participant"
    messages = {
        "en": "You are not a participant of this conversation",
        "ar": "أنت لست مشاركًا في هذه المحادثة",
    }


class NotOwner(MessagingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_owner"
    messages = {
        "en": "You can only change your own messages",
        "ar": "يمكنك تعديل رسائلك فقط",
    }


class EditWindowExpired(MessagingError):
    status_code = status.HTTP_409_CONFLICT
    code = "edit_window_expired"
    messages = {
        "en": "This message can no longer be edited",
        "ar": "لم يعد بالإمكان تعديل هذه الرسالة",
    }


class MessageDeleted(MessagingError):
    status_code = status.HTTP_409_CONFLICT
    code = "message_deleted"
    messages = {
        "en": "This message has been deleted",
        "ar": "تم حذف هذه الرسالة",
    }


class Blocked(MessagingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "blocked"
    messages = {
        "en": "You cannot send messages in this conversation",
        "ar": "لا يمكنك إرسال رسائل في هذه المحادثة",
    }


class EmptyMessage(MessagingError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "empty_message"
    messages = {
        "en": "Message cannot be empty",
        "ar": "لا يمكن أن تكون الرسالة فارغة",
    }


class UnsupportedMedia(MessagingError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "unsupported_media"
    messages = {
        "en": "Unsupported media type",
        "ar": "نوع الوسائط غير مدعوم",
    }


class ConversationNotFound(MessagingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "conversation_not_found"
    messages = {
        "en": "Conversation not found",
        "ar": "المحادثة غير موجودة",
    }


class MessageNotFound(MessagingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "message_not_found"
    messages = {
        "en": "Message not found",
        "ar": "الرسالة غير موجودة",
    }


class UserNotFound(MessagingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "user_not_found"
    messages = {
        "en": "User not found",
        "ar": "المستخدم غير موجود",
    }


class BackendUnavailable(MessagingError):
    """Raised when the storage backend cannot be reached. Never retried here."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "backend_unavailable"
    messages = {
        "en": "Service temporarily unavailable, please try again",
        "ar": "الخدمة غير متاحة مؤقتًا، يرجى المحاولة مرة أخرى",
    }


class DeliveryError(Exception):
    """Raised by a notification sink when a delivery attempt fails."""
    pass
