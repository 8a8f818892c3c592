# backend/app/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer checks.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Response

from app.core.config import settings
from app.core.constants import API_VERSION, BRAND_NAME
from app.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _health_payload() -> HealthResponse:
    """Generate the standard health response payload."""
    return HealthResponse(
        status="healthy",
        service=f"{BRAND_NAME.lower().replace(' ', '-')}-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        studio_timezone=settings.studio_timezone,
        line_configured=settings.line_configured,
    )


@router.get("", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns service info, environment, the studio timezone and whether
    LINE credentials are configured. Used by load balancers and monitoring.
    """
    response.headers["X-Service-Version"] = API_VERSION
    return _health_payload()
