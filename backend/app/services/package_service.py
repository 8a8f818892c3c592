# backend/app/services/package_service.py
"""
Package Service for the studio platform.

Packages are sold by admins (optionally with a payment record) and consumed
by bookings. Usage figures are derived from the package's bookings rather
than stored, so they always agree with the booking history.
"""

from datetime import datetime, time
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import PaymentMethod, SessionType
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import (
    add_months,
    ensure_utc,
    format_studio_date,
    studio_datetime,
    to_studio_time,
    utc_now,
)
from ..models.booking import BookingStatus
from ..models.package import Package, PackageStatus
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "total_sessions",
    "remaining_sessions",
    "valid_from",
    "valid_to",
    "price",
    "status",
    "note",
}


def default_valid_to(valid_from: datetime) -> datetime:
    """End of the studio day ``PACKAGE_VALIDITY_MONTHS`` after ``valid_from``."""
    local_day = to_studio_time(valid_from).date()
    return studio_datetime(add_months(local_day, settings.package_validity_months), time(23, 59, 59))


class PackageService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_package_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    def usage(self, package: Package, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Session usage counters for a package.

        A confirmed session whose end has passed counts as completed even
        before attendance is marked.
        """
        now = now or utc_now()
        completed = upcoming = cancelled = pending = 0
        for booking in self.booking_repository.list_for_package(package.id):
            status = booking.status
            if status in (BookingStatus.COMPLETED.value, BookingStatus.NO_SHOW.value):
                completed += 1
            elif status == BookingStatus.CONFIRMED.value and booking.end_time < now:
                completed += 1
            elif status == BookingStatus.CANCELLED.value:
                cancelled += 1
            if status == BookingStatus.PENDING.value:
                pending += 1
            if (
                status in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
                and booking.start_time > now
            ):
                upcoming += 1
        return {
            "completed_count": completed,
            "upcoming_count": upcoming,
            "cancelled_count": cancelled,
            "pending_count": pending,
            "remaining_unbooked": max(package.total_sessions - completed - upcoming, 0),
        }

    def with_usage(self, packages: List[Package]) -> List[Dict[str, Any]]:
        now = utc_now()
        return [package.to_dict(self.usage(package, now)) for package in packages]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_my_packages(self, user: User, status: Optional[str] = None) -> List[Dict[str, Any]]:
        if user.customer_profile is None:
            raise NotFoundException("Customer profile not found")
        return self.with_usage(self.repository.list_for_customer(user.customer_profile.id, status))

    def get_customer_packages(
        self, customer_id: str, status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        if self.customer_repository.get_by_id(customer_id, load_relationships=False) is None:
            raise NotFoundException("Customer not found")
        return self.with_usage(self.repository.list_for_customer(customer_id, status))

    def get_package(self, package_id: str, actor: User) -> Package:
        package = self.repository.get_by_id(package_id)
        if package is None:
            raise NotFoundException("Package not found")
        if actor.is_customer and (
            actor.customer_profile is None or package.customer_id != actor.customer_profile.id
        ):
            raise ForbiddenException("You do not have access to this package")
        return package

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_package")
    def create_package(
        self,
        actor: User,
        customer_id: str,
        name: str,
        type: str,
        total_sessions: int,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
        price: Decimal = Decimal("0"),
        note: Optional[str] = None,
        payment: Optional[Dict[str, Any]] = None,
    ) -> Package:
        """
        Sell a package to a customer.

        ``payment`` may carry ``amount``, ``method``, ``paid_at`` and ``note``;
        when given a payment row is recorded alongside the package.
        """
        if self.customer_repository.get_by_id(customer_id, load_relationships=False) is None:
            raise NotFoundException("Customer not found")
        if type not in {t.value for t in SessionType.bookable()}:
            raise ValidationException(f"Invalid package type: {type}")
        if total_sessions <= 0:
            raise ValidationException("total_sessions must be positive")

        start = ensure_utc(valid_from) if valid_from else utc_now()
        end = ensure_utc(valid_to) if valid_to else default_valid_to(start)
        if end <= start:
            raise ValidationException("valid_to must be after valid_from")

        with self.transaction():
            package = self.repository.create(
                customer_id=customer_id,
                name=name.strip(),
                type=type,
                total_sessions=total_sessions,
                remaining_sessions=total_sessions,
                valid_from=start,
                valid_to=end,
                price=price,
                currency=settings.default_currency,
                status=PackageStatus.ACTIVE.value,
                note=note,
            )
            if payment:
                method = payment.get("method") or PaymentMethod.CASH.value
                if method not in {m.value for m in PaymentMethod}:
                    raise ValidationException(f"Invalid payment method: {method}")
                self.payment_repository.create(
                    customer_id=customer_id,
                    package_id=package.id,
                    amount=payment.get("amount", price),
                    currency=settings.default_currency,
                    method=method,
                    paid_at=ensure_utc(payment["paid_at"]) if payment.get("paid_at") else utc_now(),
                    note=payment.get("note"),
                    created_by=actor.id,
                )

        self.logger.info(f"Package {package.id} created for customer {customer_id}")
        return package

    @BaseService.measure_operation("update_package")
    def update_package(
        self,
        package_id: str,
        actor: User,
        fields: Dict[str, Any],
        reason: Optional[str] = None,
    ) -> Package:
        package = self.repository.get_by_id(package_id)
        if package is None:
            raise NotFoundException("Package not found")

        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        if "status" in changes and changes["status"] not in {s.value for s in PackageStatus}:
            raise ValidationException(f"Invalid package status: {changes['status']}")
        for key in ("valid_from", "valid_to"):
            if key in changes:
                changes[key] = ensure_utc(changes[key])

        remaining_changed = (
            "remaining_sessions" in changes
            and changes["remaining_sessions"] != package.remaining_sessions
        )
        if remaining_changed and not (reason and reason.strip()):
            raise ValidationException("A reason is required when changing remaining sessions")

        total = changes.get("total_sessions", package.total_sessions)
        remaining = changes.get("remaining_sessions", package.remaining_sessions)
        if total <= 0:
            raise ValidationException("total_sessions must be positive")
        if remaining < 0 or remaining > total:
            raise ValidationException("remaining_sessions must be between 0 and total_sessions")
        if changes.get("valid_to", package.valid_to) <= changes.get("valid_from", package.valid_from):
            raise ValidationException("valid_to must be after valid_from")

        with self.transaction():
            previous_remaining = package.remaining_sessions
            for key, value in changes.items():
                setattr(package, key, value)
            if remaining_changed:
                entry = (
                    f"[{format_studio_date(utc_now())}] Sessions {previous_remaining} -> "
                    f"{package.remaining_sessions} by {actor.name}: {reason.strip()}"
                )
                package.note = f"{package.note}\n{entry}" if package.note else entry

        self.logger.info(f"Package {package.id} updated: {sorted(changes)}")
        return package

    @BaseService.measure_operation("delete_package")
    def delete_package(self, package_id: str) -> None:
        package = self.repository.get_by_id(package_id, load_relationships=False)
        if package is None:
            raise NotFoundException("Package not found")
        active = self.booking_repository.count_active_for_package(package_id)
        if active:
            raise ConflictException(
                "Cannot delete a package with active bookings",
                details={"active_bookings": active},
            )
        with self.transaction():
            self.repository.delete(package_id)
        self.logger.info(f"Package {package_id} deleted")

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    @BaseService.measure_operation("expire_packages")
    def expire_packages(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or utc_now()
        with self.transaction():
            expired = self.repository.list_active_past_validity(now)
            for package in expired:
                package.status = PackageStatus.EXPIRED.value
            used = self.repository.list_active_depleted()
            for package in used:
                package.status = PackageStatus.USED.value

        self.logger.info(f"Expired {len(expired)} packages, marked {len(used)} used")
        return {"expired": len(expired), "used": len(used)}
