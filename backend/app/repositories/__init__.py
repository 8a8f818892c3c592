# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the studio platform.

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    sessions = repository.get_occupying_in_window(start, end)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .notification_repository import (
    InAppNotificationRepository,
    MessageTemplateRepository,
    NotificationRepository,
)
from .package_repository import PackageRepository, PackageRequestRepository, PaymentRepository
from .profile_repository import CustomerRepository, TeacherRepository
from .report_repository import ExpenseRepository, PaymentReportRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CustomerRepository",
    "ExpenseRepository",
    "InAppNotificationRepository",
    "MessageTemplateRepository",
    "NotificationRepository",
    "PackageRepository",
    "PackageRequestRepository",
    "PaymentReportRepository",
    "PaymentRepository",
    "RepositoryFactory",
    "TeacherRepository",
    "UserRepository",
]
