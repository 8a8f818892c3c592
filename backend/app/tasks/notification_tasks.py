# backend/app/tasks/notification_tasks.py
"""
Celery tasks for outbound LINE notifications.

`notifications.send_due` delivers queued notifications whose time has come;
`notifications.create_reminders` queues session reminders;
`notifications.check_inactive` queues re-engagement messages.
"""

from __future__ import annotations

from typing import Dict

from celery.utils.log import get_task_logger

from app.core.config import settings
from app.database import session_scope
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.line_service import get_line_client
from app.services.notification_service import NotificationService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="notifications.send_due", max_retries=0, queue="notifications")
def send_due_notifications() -> Dict[str, int]:
    """Send every scheduled notification that is due. Returns sent/failed counts."""
    with session_scope() as session:
        service = NotificationService(session, get_line_client())
        result = service.send_due_notifications(batch_size=settings.notification_batch_size)
    if result["processed"]:
        logger.info(
            "Notifications processed=%s sent=%s failed=%s",
            result["processed"],
            result["sent"],
            result["failed"],
        )
    prometheus_metrics.record_task_result("notifications.send_due", result)
    return result


@celery_app.task(name="notifications.create_reminders", max_retries=0, queue="notifications")
def create_reminders() -> Dict[str, int]:
    with session_scope() as session:
        result = NotificationService(session, get_line_client()).create_reminders()
    logger.info("Reminders created: %s", result)
    prometheus_metrics.record_task_result("notifications.create_reminders", result)
    return result


@celery_app.task(name="notifications.check_inactive", max_retries=0, queue="notifications")
def check_inactive_customers() -> Dict[str, int]:
    """Queue INACTIVE_30D and MISSED_SESSION messages; the send task delivers them."""
    with session_scope() as session:
        result = NotificationService(session, get_line_client()).queue_reengagement()
    logger.info("Re-engagement messages queued: %s", result)
    prometheus_metrics.record_task_result("notifications.check_inactive", result)
    return result
