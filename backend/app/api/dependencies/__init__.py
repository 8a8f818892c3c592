# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import (
    get_current_active_user,
    get_current_user,
    get_current_user_optional,
    require_admin,
    require_customer,
    require_teacher,
)
from .database import get_db
from .services import (
    get_auth_service,
    get_availability_service,
    get_booking_service,
    get_customer_service,
    get_line_client_dep,
    get_line_service,
    get_notification_service,
    get_package_request_service,
    get_package_service,
    get_report_service,
    get_teacher_service,
    get_template_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_user_optional",
    "get_current_active_user",
    "require_admin",
    "require_teacher",
    "require_customer",
    # Database
    "get_db",
    # Services
    "get_auth_service",
    "get_availability_service",
    "get_booking_service",
    "get_customer_service",
    "get_line_client_dep",
    "get_line_service",
    "get_notification_service",
    "get_package_request_service",
    "get_package_service",
    "get_report_service",
    "get_teacher_service",
    "get_template_service",
]
