# backend/app/models/notification.py
"""
Notification models.

``Notification`` is the outbound queue (LINE push / email) drained by the
worker. ``InAppNotification`` is the bell feed shown in the web client.
``MessageTemplate`` holds the text body for each outbound type.
"""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Column, ForeignKey, String, Text
import ulid

from ..core.enums import NotificationChannel
from ..database import Base
from .types import StringArrayType, UTCDateTime
from .user import _utcnow


class NotificationStatus(str, Enum):
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel = Column(String(10), nullable=False, default=NotificationChannel.LINE.value)
    type = Column(String(40), nullable=False)
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    payload = Column(JSON, nullable=False, default=dict)
    scheduled_for = Column(UTCDateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=NotificationStatus.SCHEDULED.value)
    sent_at = Column(UTCDateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Notification {self.id} {self.type} -> {self.user_id} ({self.status})>"

    def mark_sent(self, when: Any) -> None:
        self.status = NotificationStatus.SENT.value
        self.sent_at = when
        self.error_message = None

    def mark_failed(self, message: str) -> None:
        self.status = NotificationStatus.FAILED.value
        self.error_message = message


class InAppNotification(Base):
    __tablename__ = "in_app_notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(40), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String(26), nullable=True)
    related_model = Column(String(40), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow, index=True)

    def __repr__(self) -> str:
        return f"<InAppNotification {self.id} {self.type} read={self.is_read}>"


class MessageTemplate(Base):
    __tablename__ = "message_templates"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    key = Column(String(40), unique=True, nullable=False, index=True)
    channel = Column(String(10), nullable=False, default=NotificationChannel.LINE.value)
    body = Column(Text, nullable=False)
    variables = Column(StringArrayType, nullable=True, default=list)

    updated_at = Column(UTCDateTime, nullable=True, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<MessageTemplate {self.key} ({self.channel})>"
