# backend/app/tasks/__init__.py
"""
Celery tasks package for the studio platform.

- notification_tasks: LINE delivery, session reminders and re-engagement
- booking_tasks: auto-confirmation of unanswered requests
- package_tasks: package expiry
"""

from app.tasks.celery_app import StudioTask, celery_app, ping
from app.tasks.booking_tasks import auto_confirm_bookings  # noqa: E402
from app.tasks.notification_tasks import (  # noqa: E402
    check_inactive_customers,
    create_reminders,
    send_due_notifications,
)
from app.tasks.package_tasks import expire_packages  # noqa: E402

__all__ = [
    "StudioTask",
    "ping",
    "celery_app",
    "auto_confirm_bookings",
    "check_inactive_customers",
    "create_reminders",
    "expire_packages",
    "send_due_notifications",
]
