# backend/app/repositories/notification_repository.py
"""
Notification repositories.

``NotificationRepository`` serves the outbound queue drained by the worker;
``InAppNotificationRepository`` serves the notification bell;
``MessageTemplateRepository`` serves template lookups.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.notification import (
    InAppNotification,
    MessageTemplate,
    Notification,
    NotificationStatus,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def get_due(self, now: datetime, limit: int = 100) -> List[Notification]:
        """Scheduled notifications whose time has come, oldest first."""
        query = (
            self.db.query(Notification)
            .filter(
                Notification.status == NotificationStatus.SCHEDULED.value,
                Notification.scheduled_for <= now,
            )
            .order_by(Notification.scheduled_for.asc())
            .limit(limit)
        )
        return self._run(query, "getting due notifications")

    def exists_for_booking(self, booking_id: str, notification_type: str) -> bool:
        return self.exists(booking_id=booking_id, type=notification_type)

    def exists_for_user_since(self, user_id: str, notification_type: str, since: datetime) -> bool:
        """Whether the user was queued a message of this type at or after ``since``."""
        with self._translate_errors("checking"):
            query = self.db.query(Notification).filter(
                Notification.user_id == user_id,
                Notification.type == notification_type,
                Notification.created_at >= since,
            )
            return query.first() is not None


class InAppNotificationRepository(BaseRepository[InAppNotification]):
    def __init__(self, db: Session):
        super().__init__(db, InAppNotification)

    def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[InAppNotification]:
        query = self.db.query(InAppNotification).filter(InAppNotification.user_id == user_id)
        if unread_only:
            query = query.filter(InAppNotification.is_read.is_(False))
        query = query.order_by(InAppNotification.created_at.desc()).limit(limit)
        return self._run(query, "listing in-app notifications")

    def count_unread(self, user_id: str) -> int:
        return self.count(user_id=user_id, is_read=False)

    def mark_all_read(self, user_id: str) -> int:
        try:
            updated = (
                self.db.query(InAppNotification)
                .filter(
                    InAppNotification.user_id == user_id,
                    InAppNotification.is_read.is_(False),
                )
                .update({InAppNotification.is_read: True}, synchronize_session=False)
            )
            self.db.flush()
            return int(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking notifications read for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark notifications read: {str(e)}")


class MessageTemplateRepository(BaseRepository[MessageTemplate]):
    def __init__(self, db: Session):
        super().__init__(db, MessageTemplate)

    def get_by_key(self, key: str) -> Optional[MessageTemplate]:
        return self.find_one_by(key=key)

    def list_all(self) -> List[MessageTemplate]:
        return self._run(self.db.query(MessageTemplate).order_by(MessageTemplate.key), "listing templates")
