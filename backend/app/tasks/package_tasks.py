# backend/app/tasks/package_tasks.py
"""Daily package housekeeping."""

from __future__ import annotations

from typing import Dict

from celery.utils.log import get_task_logger

from app.database import session_scope
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.package_service import PackageService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="packages.expire", max_retries=0)
def expire_packages() -> Dict[str, int]:
    with session_scope() as session:
        result = PackageService(session).expire_packages()
    logger.info("Packages expired=%s used=%s", result["expired"], result["used"])
    prometheus_metrics.record_task_result("packages.expire", result)
    return result
