# backend/app/main.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .database import SessionLocal, init_db
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import prometheus
from .routes.v1 import (
    admin as admin_v1,
    auth as auth_v1,
    availability as availability_v1,
    bookings as bookings_v1,
    customers as customers_v1,
    health as health_v1,
    line as line_v1,
    notifications as notifications_v1,
    packages as packages_v1,
    teachers as teachers_v1,
)
from .services.template_service import TemplateService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _seed_templates() -> int:
    db = SessionLocal()
    try:
        return TemplateService(db).ensure_defaults()
    finally:
        db.close()


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment} (timezone={settings.studio_timezone})")

    if settings.environment != "production":
        # Production schemas are managed by migrations
        await asyncio.to_thread(init_db)
    try:
        await asyncio.to_thread(_seed_templates)
    except Exception as exc:
        logger.error(f"Failed to seed message templates: {exc}")

    if not settings.line_configured:
        logger.warning("LINE credentials not configured; LINE notifications will be skipped")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

# API v1 router; each module is mounted under its own prefix
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(auth_v1.router, prefix="/auth")
# Availability before bookings so /bookings/availability and /bookings/blocks are static paths
api_v1.include_router(availability_v1.router, prefix="/bookings")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(packages_v1.router, prefix="/packages")
api_v1.include_router(teachers_v1.router, prefix="/teachers")
api_v1.include_router(customers_v1.router, prefix="/customers")
api_v1.include_router(notifications_v1.router, prefix="/notifications")
api_v1.include_router(line_v1.router, prefix="/line")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(health_v1.router, prefix="/health")

app.include_router(api_v1)

# Unversioned infrastructure endpoints
app.include_router(health_v1.router, prefix="/health")
app.include_router(prometheus.router)


@app.get("/", include_in_schema=False)
def root() -> dict[str, str]:
    return {"message": f"Welcome to the {API_TITLE}", "docs": "/docs", "version": API_VERSION}


# Export what's needed
__all__ = ["app"]
