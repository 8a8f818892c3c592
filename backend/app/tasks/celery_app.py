# backend/app/tasks/celery_app.py
"""
Celery application for the studio's periodic jobs.

The worker sends queued LINE notifications, creates session reminders,
queues re-engagement messages, auto-confirms stale booking requests and
expires packages. Beat crontabs are evaluated in the studio's local
timezone.
"""

import logging
import os
from typing import Any, Dict, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from app.core.config import settings
from app.core.timezone_utils import utc_now

logger = logging.getLogger(__name__)

TASK_MODULES = (
    "app.tasks.notification_tasks",
    "app.tasks.booking_tasks",
    "app.tasks.package_tasks",
)

# LINE pushes run on their own queue
TASK_ROUTES = {
    "notifications.*": {"queue": "notifications"},
    "bookings.*": {"queue": "celery"},
    "packages.*": {"queue": "celery"},
}


def _broker_url() -> str:
    url = os.getenv("CELERY_BROKER_URL") or settings.redis_url
    if url.startswith("redis") and not url.rstrip("/").rsplit("/", 1)[-1].isdigit():
        url = f"{url.rstrip('/')}/0"
    return url


def create_celery_app() -> Celery:
    """Build the Celery app from settings."""
    broker_url = _broker_url()
    app = Celery(
        "studio",
        broker=broker_url,
        backend=os.getenv("CELERY_RESULT_BACKEND") or broker_url,
        include=list(TASK_MODULES),
    )

    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=settings.studio_timezone,
        enable_utc=True,
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_soft_time_limit=120,
        task_time_limit=300,
        task_default_retry_delay=60,
        worker_hijack_root_logger=False,
        result_expires=86400,
        task_routes=TASK_ROUTES,
        # Tests run tasks inline
        task_always_eager=settings.is_testing,
    )

    from app.tasks.beat_schedule import get_beat_schedule

    app.conf.beat_schedule = get_beat_schedule(settings.environment)
    return app


@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Keep Celery from replacing the application's log format."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


celery_app = create_celery_app()


class StudioTask(Task):  # type: ignore[misc]
    """Default task base; logs failures and retries with the task id."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.error(
            f"Task {self.name}[{task_id}] failed: {exc}",
            exc_info=True,
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.warning(
            f"Task {self.name}[{task_id}] retry {self.request.retries}: {exc}",
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)


celery_app.Task = cast(Type[Task], StudioTask)


@celery_app.task(name="studio.ping")  # type: ignore[misc]
def ping() -> Dict[str, str]:
    """Round-trip check used by deploy scripts to confirm a worker is consuming."""
    current = celery_app.current_task
    return {
        "status": "ok",
        "worker": current.request.hostname if current and current.request.hostname else "eager",
        "timezone": settings.studio_timezone,
        "timestamp": utc_now().isoformat(),
    }
