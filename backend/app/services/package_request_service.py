# backend/app/services/package_request_service.py
"""
Customer package requests.

A customer asks for a package; an admin approves it (which sells the
package) or rejects it. Both sides are kept informed through in-app
notifications.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_REQUEST_REJECTION_REASON
from ..core.enums import InAppNotificationType, SessionType
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import utc_now
from ..models.package_request import PackageRequest, PackageRequestStatus
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService
from .package_service import PackageService

logger = logging.getLogger(__name__)


def _check_type_and_sessions(package_type: str, sessions: int) -> None:
    if package_type not in {t.value for t in SessionType.bookable()}:
        raise ValidationException(f"Invalid package type: {package_type}")
    if sessions <= 0:
        raise ValidationException("sessions must be positive")


class PackageRequestService(BaseService):
    def __init__(
        self,
        db: Session,
        package_service: Optional[PackageService] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_package_request_repository(db)
        self.package_service = package_service or PackageService(db)
        self.notification_service = notification_service or NotificationService(db)

    def _get(self, request_id: str) -> PackageRequest:
        request = self.repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException("Package request not found")
        return request

    @BaseService.measure_operation("create_package_request")
    def create_request(
        self, user: User, package_type: str, sessions: int, notes: Optional[str] = None
    ) -> PackageRequest:
        if user.customer_profile is None:
            raise NotFoundException("Customer profile not found")
        _check_type_and_sessions(package_type, sessions)

        with self.transaction():
            request = self.repository.create(
                customer_id=user.customer_profile.id,
                package_type=package_type,
                sessions=sessions,
                requested_at=utc_now(),
                status=PackageRequestStatus.PENDING.value,
                notes=notes,
            )

        self.notification_service.notify_admins(
            InAppNotificationType.PACKAGE_REQUESTED.value,
            "New Package Request",
            f"{user.name} requested a {sessions} session {package_type} package",
            request.id,
            "PackageRequest",
        )
        return request

    def list_my_requests(self, user: User) -> List[PackageRequest]:
        if user.customer_profile is None:
            raise NotFoundException("Customer profile not found")
        return self.repository.list_for_customer(user.customer_profile.id)

    def list_pending_requests(self) -> List[PackageRequest]:
        return self.repository.list_by_status(PackageRequestStatus.PENDING.value, oldest_first=True)

    def list_requests(self, status: Optional[str] = None) -> List[PackageRequest]:
        return self.repository.list_by_status(status)

    @BaseService.measure_operation("approve_package_request")
    def approve_request(
        self,
        request_id: str,
        admin: User,
        package_type: str,
        sessions: int,
        price: Decimal,
        valid_from: Optional[datetime] = None,
    ) -> PackageRequest:
        """Approve a pending request, selling the package the admin settled on."""
        request = self._get(request_id)
        if not request.is_pending:
            raise ValidationException("This request has already been reviewed")
        _check_type_and_sessions(package_type, sessions)
        if price is None or price < 0:
            raise ValidationException("price is required")

        package = self.package_service.create_package(
            admin,
            request.customer_id,
            name=f"{sessions} Session Package",
            type=package_type,
            total_sessions=sessions,
            valid_from=valid_from,
            price=price,
            note=f"Created from package request {request.id}",
        )
        with self.transaction():
            request.status = PackageRequestStatus.APPROVED.value
            request.reviewed_by = admin.id
            request.reviewed_at = utc_now()
            request.package_id = package.id

        if request.customer is not None:
            self.notification_service.notify(
                request.customer.user_id,
                InAppNotificationType.PACKAGE_APPROVED.value,
                "Package Request Approved",
                f"Your request for a {sessions} session {package_type} package has been approved",
                package.id,
                "Package",
            )
        return request

    @BaseService.measure_operation("reject_package_request")
    def reject_request(
        self, request_id: str, admin: User, reason: Optional[str] = None
    ) -> PackageRequest:
        request = self._get(request_id)
        if not request.is_pending:
            raise ValidationException("This request has already been reviewed")

        reason = (reason or "").strip() or DEFAULT_REQUEST_REJECTION_REASON
        with self.transaction():
            request.status = PackageRequestStatus.REJECTED.value
            request.reviewed_by = admin.id
            request.reviewed_at = utc_now()
            request.rejection_reason = reason

        if request.customer is not None:
            self.notification_service.notify(
                request.customer.user_id,
                InAppNotificationType.PACKAGE_REJECTED.value,
                "Package Request Rejected",
                f"Your package request was rejected. Reason: {reason}",
                request.id,
                "PackageRequest",
            )
        return request
