# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...integrations.line_client import LineClient
from ...services.analytics_service import AnalyticsService
from ...services.auth_service import AuthService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.customer_service import CustomerService
from ...services.line_service import LineService, get_line_client
from ...services.notification_service import NotificationService
from ...services.package_request_service import PackageRequestService
from ...services.package_service import PackageService
from ...services.report_service import ReportService
from ...services.teacher_service import TeacherService
from ...services.template_service import TemplateService
from .database import get_db

logger = logging.getLogger(__name__)


def get_line_client_dep() -> LineClient:
    """LINE client built from settings; overridden in tests."""
    return get_line_client()


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_notification_service(
    db: Session = Depends(get_db),
    line_client: LineClient = Depends(get_line_client_dep),
) -> NotificationService:
    """
    Get notification service instance.

    Args:
        db: Database session
        line_client: Client used for outbound LINE pushes

    Returns:
        NotificationService instance
    """
    return NotificationService(db, line_client)


def get_template_service(db: Session = Depends(get_db)) -> TemplateService:
    return TemplateService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_availability_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> AvailabilityService:
    return AvailabilityService(db, conflict_checker)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        notification_service: In-app and LINE notifications
        conflict_checker: Slot and conflict rules

    Returns:
        BookingService instance
    """
    return BookingService(db, notification_service, conflict_checker)


def get_package_service(db: Session = Depends(get_db)) -> PackageService:
    return PackageService(db)


def get_package_request_service(
    db: Session = Depends(get_db),
    package_service: PackageService = Depends(get_package_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> PackageRequestService:
    return PackageRequestService(db, package_service, notification_service)


def get_teacher_service(db: Session = Depends(get_db)) -> TeacherService:
    return TeacherService(db)


def get_customer_service(
    db: Session = Depends(get_db),
    package_service: PackageService = Depends(get_package_service),
) -> CustomerService:
    return CustomerService(db, package_service)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


def get_line_service(
    db: Session = Depends(get_db),
    line_client: LineClient = Depends(get_line_client_dep),
) -> LineService:
    return LineService(db, line_client)
