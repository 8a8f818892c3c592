# backend/app/repositories/factory.py
"""
Repository Factory for the studio platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .notification_repository import (
        InAppNotificationRepository,
        MessageTemplateRepository,
        NotificationRepository,
    )
    from .package_repository import (
        PackageRepository,
        PackageRequestRepository,
        PaymentRepository,
    )
    from .profile_repository import CustomerRepository, TeacherRepository
    from .report_repository import ExpenseRepository, PaymentReportRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_customer_repository(db: Session) -> "CustomerRepository":
        from .profile_repository import CustomerRepository

        return CustomerRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> "TeacherRepository":
        from .profile_repository import TeacherRepository

        return TeacherRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for bookings and time blocks."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_package_repository(db: Session) -> "PackageRepository":
        from .package_repository import PackageRepository

        return PackageRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        from .package_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_package_request_repository(db: Session) -> "PackageRequestRepository":
        from .package_repository import PackageRequestRepository

        return PackageRequestRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        """Create repository for the outbound notification queue."""
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)

    @staticmethod
    def create_in_app_notification_repository(db: Session) -> "InAppNotificationRepository":
        from .notification_repository import InAppNotificationRepository

        return InAppNotificationRepository(db)

    @staticmethod
    def create_message_template_repository(db: Session) -> "MessageTemplateRepository":
        from .notification_repository import MessageTemplateRepository

        return MessageTemplateRepository(db)

    @staticmethod
    def create_payment_report_repository(db: Session) -> "PaymentReportRepository":
        from .report_repository import PaymentReportRepository

        return PaymentReportRepository(db)

    @staticmethod
    def create_expense_repository(db: Session) -> "ExpenseRepository":
        from .report_repository import ExpenseRepository

        return ExpenseRepository(db)
