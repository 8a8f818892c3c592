"""Health check schemas."""

from .base import StandardizedModel


class HealthResponse(StandardizedModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str
    studio_timezone: str
    line_configured: bool = False
