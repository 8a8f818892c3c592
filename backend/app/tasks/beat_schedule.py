# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for the studio platform.

Crontab expressions are evaluated in the Celery app timezone, which is the
studio timezone.
"""

import logging
from typing import Any, Dict

from celery.schedules import crontab

logger = logging.getLogger(__name__)

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    # Deliver queued LINE messages
    "send-due-notifications": {
        "task": "notifications.send_due",
        "schedule": crontab(minute="*/5"),
        "options": {"queue": "notifications", "priority": 8},
    },
    # Queue 24h / 6h reminders for upcoming confirmed sessions
    "create-session-reminders": {
        "task": "notifications.create_reminders",
        "schedule": crontab(minute=0),
        "options": {"queue": "notifications", "priority": 6},
    },
    # Nudge customers with unused sessions, follow up no-shows
    "check-inactive-customers": {
        "task": "notifications.check_inactive",
        "schedule": crontab(hour=9, minute=0),
        "options": {"queue": "notifications", "priority": 3},
    },
    # Expire packages past their validity, mark depleted ones used
    "expire-packages": {
        "task": "packages.expire",
        "schedule": crontab(hour=1, minute=0),
        "options": {"priority": 4},
    },
    # Confirm requests teachers have not answered
    "auto-confirm-bookings": {
        "task": "bookings.auto_confirm",
        "schedule": crontab(minute=30),
        "options": {"priority": 5},
    },
}


def get_beat_schedule(environment: str = "production") -> Dict[str, Dict[str, Any]]:
    """Beat schedule for the given environment; nothing is scheduled under test."""
    if environment == "test":
        return {}
    logger.debug(f"Using beat schedule with {len(CELERYBEAT_SCHEDULE)} entries for {environment}")
    return dict(CELERYBEAT_SCHEDULE)
