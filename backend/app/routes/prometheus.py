"""
Prometheus metrics endpoint.

PUBLIC endpoint (no authentication) so the scraper can reach it. Only
request and service timing metrics are exposed, no studio data.
"""

import os
from time import monotonic
from typing import Optional, Tuple

from fastapi import APIRouter, Request, Response
from prometheus_client import Counter

from app.core.config import settings
from app.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics

router = APIRouter()

_CACHE_TTL_SECONDS = 1.0
_metrics_cache: Optional[Tuple[float, bytes]] = None
_scrape_counter = Counter(
    "studio_prometheus_scrapes_total",
    "Total number of Prometheus metrics scrapes",
    registry=REGISTRY,
)


def _cache_enabled() -> bool:
    if os.getenv("PROMETHEUS_DISABLE_CACHE", "0").lower() in {"1", "true", "yes"}:
        return False
    return (settings.environment or "").strip().lower() != "test"


def _get_metrics_payload(*, force_refresh: bool = False) -> bytes:
    """Return the exposition payload, reusing it for scrapes within the TTL."""
    global _metrics_cache

    now = monotonic()
    if not _cache_enabled():
        return prometheus_metrics.get_metrics()

    if not force_refresh and _metrics_cache is not None:
        cached_ts, cached_payload = _metrics_cache
        if now - cached_ts < _CACHE_TTL_SECONDS:
            return cached_payload

    payload = prometheus_metrics.get_metrics()
    _metrics_cache = (now, payload)
    return payload


@router.get("/metrics", include_in_schema=False, response_class=Response, response_model=None)
async def get_prometheus_metrics(request: Request) -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    refresh_flag = request.query_params.get("refresh", "").lower() in {"1", "true", "yes"}

    _scrape_counter.inc()
    metrics_data = _get_metrics_payload(force_refresh=refresh_flag)

    return Response(
        content=metrics_data,
        media_type=prometheus_metrics.get_content_type(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
