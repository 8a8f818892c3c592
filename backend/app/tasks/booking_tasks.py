# backend/app/tasks/booking_tasks.py
"""Periodic booking maintenance."""

from __future__ import annotations

from typing import Dict

from celery.utils.log import get_task_logger

from app.database import session_scope
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.booking_service import BookingService
from app.services.line_service import get_line_client
from app.services.notification_service import NotificationService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="bookings.auto_confirm", max_retries=0)
def auto_confirm_bookings() -> Dict[str, int]:
    """Confirm customer requests left unanswered past the auto-confirm window."""
    with session_scope() as session:
        notifications = NotificationService(session, get_line_client())
        result = BookingService(session, notifications).auto_confirm_stale_requests()
    logger.info("Auto-confirm: confirmed=%s skipped=%s", result["confirmed"], result["skipped"])
    prometheus_metrics.record_task_result("bookings.auto_confirm", result)
    return result
