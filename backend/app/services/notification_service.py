# backend/app/services/notification_service.py
"""
Notification Service for the studio platform.

Two delivery paths:

- In-app notifications, written straight to the bell feed.
- Outbound LINE messages, queued as ``Notification`` rows and sent by the
  worker once ``scheduled_for`` has passed.

The worker also queues re-engagement messages: INACTIVE_30D for customers
with unused sessions and no recent booking, MISSED_SESSION after a no-show.

Callers treat every notification as a best-effort side effect: failures
are logged and never undo the change that triggered them.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Dict, Optional

from jinja2 import TemplateError
from sqlalchemy.orm import Session

from ..core.constants import (
    INACTIVE_CUSTOMER_DAYS,
    MISSED_SESSION_LOOKBACK_HOURS,
    REMINDER_6H_HOURS,
    REMINDER_6H_TOLERANCE_MINUTES,
    REMINDER_24H_HOURS,
    REMINDER_24H_TOLERANCE_MINUTES,
)
from ..core.enums import NotificationChannel, NotificationType
from ..core.exceptions import NotFoundException
from ..core.timezone_utils import format_studio_date, format_studio_time, utc_now
from ..integrations.line_client import LineApiError, LineClient
from ..models.booking import Booking
from ..models.customer import Customer
from ..models.notification import InAppNotification, Notification
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .line_service import get_line_client
from .template_service import TemplateService, template_key

logger = logging.getLogger(__name__)

ERROR_USER_NOT_FOUND = "User not found"
ERROR_NO_LINE_ID = "User has no LINE ID connected"
ERROR_LINE_NOT_CONFIGURED = "LINE messaging is not configured"


def booking_payload(booking: Booking, **extra: Any) -> Dict[str, Any]:
    """Template variables describing a booking in studio local time."""
    payload = {
        "name": booking.customer.name if booking.customer is not None else "",
        "date": format_studio_date(booking.start_time),
        "time": format_studio_time(booking.start_time),
        "teacher": booking.teacher.name if booking.teacher is not None else "Instructor",
    }
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload


class NotificationService(BaseService):
    """In-app feed, outbound queue and reminder creation."""

    def __init__(self, db: Session, line_client: Optional[LineClient] = None):
        super().__init__(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self.in_app_repository = RepositoryFactory.create_in_app_notification_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.template_service = TemplateService(db)
        self._line_client = line_client

    @property
    def line_client(self) -> LineClient:
        if self._line_client is None:
            self._line_client = get_line_client()
        return self._line_client

    # ------------------------------------------------------------------
    # In-app feed
    # ------------------------------------------------------------------

    def create_in_app(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_model: Optional[str] = None,
    ) -> InAppNotification:
        """Add an entry to the user's bell feed. Flushes; the caller commits."""
        notification = self.in_app_repository.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            related_model=related_model,
            is_read=False,
        )
        self.logger.info(f"In-app notification created for user {user_id}: {type}")
        return notification

    def notify(
        self,
        user_id: Optional[str],
        type: str,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_model: Optional[str] = None,
    ) -> bool:
        """Best-effort in-app notification committed on its own."""
        if not user_id:
            return False
        try:
            with self.transaction():
                self.create_in_app(user_id, type, title, message, related_id, related_model)
            return True
        except Exception as exc:
            self.logger.error(f"Failed to notify user {user_id} ({type}): {exc}")
            return False

    def notify_admins(
        self,
        type: str,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_model: Optional[str] = None,
    ) -> int:
        """Best-effort fan-out to every active admin. Returns how many were notified."""
        try:
            admins = self.user_repository.list_active_admins()
        except Exception as exc:
            self.logger.error(f"Failed to load admins for {type} notification: {exc}")
            return 0
        return sum(
            1
            for admin in admins
            if self.notify(admin.id, type, title, message, related_id, related_model)
        )

    def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> Dict[str, Any]:
        notifications = self.in_app_repository.list_for_user(user_id, unread_only, limit)
        return {
            "notifications": notifications,
            "unread_count": self.in_app_repository.count_unread(user_id),
        }

    def _get_owned(self, user_id: str, notification_id: str) -> InAppNotification:
        notification = self.in_app_repository.get_by_id(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundException("Notification not found")
        return notification

    @BaseService.measure_operation("mark_notification_read")
    def mark_read(self, user_id: str, notification_id: str) -> InAppNotification:
        notification = self._get_owned(user_id, notification_id)
        with self.transaction():
            notification.is_read = True
        return notification

    @BaseService.measure_operation("mark_all_notifications_read")
    def mark_all_read(self, user_id: str) -> int:
        with self.transaction():
            updated = self.in_app_repository.mark_all_read(user_id)
        return updated

    @BaseService.measure_operation("delete_notification")
    def delete(self, user_id: str, notification_id: str) -> None:
        notification = self._get_owned(user_id, notification_id)
        with self.transaction():
            self.db.delete(notification)

    # ------------------------------------------------------------------
    # Outbound queue
    # ------------------------------------------------------------------

    def schedule(
        self,
        user_id: str,
        type: str,
        payload: Dict[str, Any],
        scheduled_for: Optional[datetime] = None,
        booking_id: Optional[str] = None,
        channel: str = NotificationChannel.LINE.value,
    ) -> Notification:
        """Queue an outbound message. Flushes; the caller commits."""
        return self.notification_repository.create(
            user_id=user_id,
            channel=channel,
            type=type,
            booking_id=booking_id,
            payload=payload,
            scheduled_for=scheduled_for or utc_now(),
        )

    def schedule_best_effort(
        self, user_id: Optional[str], type: str, payload: Dict[str, Any], **kwargs: Any
    ) -> bool:
        if not user_id:
            return False
        try:
            with self.transaction():
                self.schedule(user_id, type, payload, **kwargs)
            return True
        except Exception as exc:
            self.logger.error(f"Failed to queue {type} for user {user_id}: {exc}")
            return False

    def _deliver(self, notification: Notification) -> Optional[str]:
        """Send one queued notification. Returns an error message or None on success."""
        user = self.user_repository.get_by_id(notification.user_id, load_relationships=False)
        if user is None:
            return ERROR_USER_NOT_FOUND
        if not user.line_user_id:
            return ERROR_NO_LINE_ID

        template = self.template_service.get_for_type(notification.type)
        if template is None:
            return f"Template not found: {template_key(notification.type)}"

        try:
            text = self.template_service.render(template.body, notification.payload or {})
        except TemplateError as exc:
            return f"Template {template.key} could not be rendered: {exc}"
        try:
            if not self.line_client.push_text(user.line_user_id, text):
                return ERROR_LINE_NOT_CONFIGURED
        except LineApiError as exc:
            return str(exc)
        return None

    @BaseService.measure_operation("send_due_notifications")
    def send_due_notifications(
        self, now: Optional[datetime] = None, batch_size: int = 100
    ) -> Dict[str, int]:
        now = now or utc_now()
        due = self.notification_repository.get_due(now, batch_size)
        sent = failed = 0

        # One commit per notification; a delivered message stays marked sent
        for notification in due:
            notification_id = notification.id
            try:
                error = self._deliver(notification)
            except Exception as exc:
                self.logger.error(f"Unexpected error delivering notification {notification_id}: {exc}")
                self.db.rollback()
                error = f"Delivery error: {exc}"

            try:
                with self.transaction():
                    if error is None:
                        notification.mark_sent(utc_now())
                    else:
                        notification.mark_failed(error)
            except Exception as exc:
                self.logger.error(f"Could not record status of notification {notification_id}: {exc}")
                continue

            if error is None:
                sent += 1
                prometheus_metrics.record_notification(notification.channel, "sent")
            else:
                failed += 1
                prometheus_metrics.record_notification(notification.channel, "failed")
                self.logger.warning(f"Notification {notification_id} failed: {error}")

        self.logger.info(f"Processed {len(due)} notifications: {sent} sent, {failed} failed")
        return {"processed": len(due), "sent": sent, "failed": failed}

    def _create_reminders_for(
        self,
        now: datetime,
        notification_type: NotificationType,
        hours_before: int,
        tolerance_minutes: int,
    ) -> int:
        target = now + timedelta(hours=hours_before)
        tolerance = timedelta(minutes=tolerance_minutes)
        bookings = self.booking_repository.list_confirmed_starting_between(
            target - tolerance, target + tolerance
        )

        created = 0
        for booking in bookings:
            if booking.customer is None:
                continue
            if self.notification_repository.exists_for_booking(booking.id, notification_type.value):
                continue
            try:
                with self.transaction():
                    self.schedule(
                        booking.customer.user_id,
                        notification_type.value,
                        booking_payload(booking),
                        scheduled_for=booking.start_time - timedelta(hours=hours_before),
                        booking_id=booking.id,
                    )
                created += 1
            except Exception as exc:
                self.logger.error(
                    f"Error creating {notification_type.value} for booking {booking.id}: {exc}"
                )
        self.logger.info(f"Created {created} {notification_type.value} reminders")
        return created

    @BaseService.measure_operation("create_reminders")
    def create_reminders(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or utc_now()
        return {
            "reminder_24h": self._create_reminders_for(
                now,
                NotificationType.REMINDER_24H,
                REMINDER_24H_HOURS,
                REMINDER_24H_TOLERANCE_MINUTES,
            ),
            "reminder_6h": self._create_reminders_for(
                now,
                NotificationType.REMINDER_6H,
                REMINDER_6H_HOURS,
                REMINDER_6H_TOLERANCE_MINUTES,
            ),
        }

    # ------------------------------------------------------------------
    # Re-engagement
    # ------------------------------------------------------------------

    def _queue_inactive_reminders(self, now: datetime) -> int:
        """INACTIVE_30D for customers holding unused sessions who have not booked in a while."""
        cutoff = now - timedelta(days=INACTIVE_CUSTOMER_DAYS)
        remaining: Dict[str, int] = {}
        customers: Dict[str, Customer] = {}
        for package in self.package_repository.list_usable(now):
            remaining[package.customer_id] = (
                remaining.get(package.customer_id, 0) + package.remaining_sessions
            )
            customers[package.customer_id] = package.customer

        queued = 0
        for customer_id, sessions in remaining.items():
            user = customers[customer_id].user
            if user is None or not user.is_active or not user.line_user_id:
                continue
            last_session = self.booking_repository.latest_booked_start(customer_id)
            if last_session is not None and last_session >= cutoff:
                continue
            if self.notification_repository.exists_for_user_since(
                user.id, NotificationType.INACTIVE_30D.value, cutoff
            ):
                continue
            try:
                with self.transaction():
                    self.schedule(
                        user.id,
                        NotificationType.INACTIVE_30D.value,
                        {"name": user.name, "sessions": sessions},
                        scheduled_for=now,
                    )
                queued += 1
            except Exception as exc:
                self.logger.error(f"Error queuing inactivity reminder for customer {customer_id}: {exc}")
        self.logger.info(f"Queued {queued} inactivity reminders")
        return queued

    def _queue_missed_session_messages(self, now: datetime) -> int:
        since = now - timedelta(hours=MISSED_SESSION_LOOKBACK_HOURS)
        queued = 0
        for booking in self.booking_repository.list_no_shows_between(since, now):
            if booking.customer is None:
                continue
            if self.notification_repository.exists_for_booking(
                booking.id, NotificationType.MISSED_SESSION.value
            ):
                continue
            try:
                with self.transaction():
                    self.schedule(
                        booking.customer.user_id,
                        NotificationType.MISSED_SESSION.value,
                        booking_payload(booking),
                        scheduled_for=now,
                        booking_id=booking.id,
                    )
                queued += 1
            except Exception as exc:
                self.logger.error(f"Error queuing missed-session message for booking {booking.id}: {exc}")
        self.logger.info(f"Queued {queued} missed-session messages")
        return queued

    @BaseService.measure_operation("queue_reengagement")
    def queue_reengagement(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Queue messages for inactive customers and recent no-shows."""
        now = now or utc_now()
        return {
            "inactive": self._queue_inactive_reminders(now),
            "missed_session": self._queue_missed_session_messages(now),
        }
