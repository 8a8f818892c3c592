# backend/app/services/customer_service.py
"""Customer profile and overview operations."""

from datetime import date
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.timezone_utils import utc_now
from ..models.booking import BookingStatus
from ..models.customer import Customer
from ..models.package import PackageStatus
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .package_service import PackageService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "date_of_birth",
    "gender",
    "profession",
    "health_notes",
    "preferred_teacher_id",
    "emergency_contact_name",
    "emergency_contact_phone",
)

ADMIN_FIELDS = PROFILE_FIELDS + ("tags",)

NEXT_BOOKINGS_LIMIT = 5


def customer_dict(customer: Customer) -> Dict[str, Any]:
    user = customer.user
    return {
        "id": customer.id,
        "user_id": customer.user_id,
        "name": customer.name,
        "email": user.email if user else None,
        "phone": user.phone if user else None,
        "line_connected": bool(user and user.has_line),
        "status": user.status if user else None,
        "date_of_birth": customer.date_of_birth,
        "gender": customer.gender,
        "profession": customer.profession,
        "health_notes": customer.health_notes,
        "preferred_teacher_id": customer.preferred_teacher_id,
        "emergency_contact_name": customer.emergency_contact_name,
        "emergency_contact_phone": customer.emergency_contact_phone,
        "tags": customer.tags or [],
        "created_at": customer.created_at,
    }


class CustomerService(BaseService):
    def __init__(self, db: Session, package_service: Optional[PackageService] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_customer_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.package_service = package_service or PackageService(db)

    def _get(self, customer_id: str) -> Customer:
        customer = self.repository.get_by_id(customer_id)
        if customer is None:
            raise NotFoundException("Customer not found")
        return customer

    def overview(self, customer: Customer) -> Dict[str, Any]:
        """Profile, active packages with usage, and the next few bookings."""
        packages = self.package_repository.list_for_customer(
            customer.id, PackageStatus.ACTIVE.value
        )
        upcoming = [
            b
            for b in self.booking_repository.list_for_customer(customer.id, starting_after=utc_now())
            if b.status
            in (
                BookingStatus.PENDING.value,
                BookingStatus.CONFIRMED.value,
                BookingStatus.CANCELLATION_REQUESTED.value,
            )
        ]
        return {
            "profile": customer_dict(customer),
            "packages": self.package_service.with_usage(packages),
            "next_bookings": [b.to_dict() for b in upcoming[:NEXT_BOOKINGS_LIMIT]],
        }

    def get_my_overview(self, user: User) -> Dict[str, Any]:
        if user.customer_profile is None:
            raise NotFoundException("Customer profile not found")
        return self.overview(user.customer_profile)

    def _check_update(self, user: User, fields: Dict[str, Any]) -> None:
        teacher_id = fields.get("preferred_teacher_id")
        if teacher_id:
            teacher = self.teacher_repository.get_by_id(teacher_id, load_relationships=False)
            if teacher is None or not teacher.is_active:
                raise NotFoundException("Preferred teacher not found")

        phone = (fields.get("phone") or "").strip()
        if phone:
            holder = self.user_repository.get_by_phone(phone)
            if holder is not None and holder.id != user.id:
                raise ConflictException("Phone number already registered")

        dob = fields.get("date_of_birth")
        if isinstance(dob, date) and dob > date.today():
            raise ValidationException("date_of_birth cannot be in the future")

    def _apply_update(
        self, customer: Customer, fields: Dict[str, Any], allowed: Tuple[str, ...]
    ) -> Customer:
        user = customer.user
        self._check_update(user, fields)
        with self.transaction():
            for key in allowed:
                if key in fields:
                    setattr(customer, key, fields[key])
            if fields.get("name"):
                user.name = fields["name"].strip()
            if "phone" in fields:
                user.phone = (fields["phone"] or "").strip() or None
        return customer

    @BaseService.measure_operation("update_customer_profile")
    def update_profile(self, user: User, fields: Dict[str, Any]) -> Customer:
        customer = user.customer_profile
        if customer is None:
            raise NotFoundException("Customer profile not found")
        return self._apply_update(customer, fields, PROFILE_FIELDS)

    @BaseService.measure_operation("update_customer")
    def update_customer(self, customer_id: str, fields: Dict[str, Any]) -> Customer:
        """Admin edit of any customer; also manages tags."""
        customer = self._get(customer_id)
        if "tags" in fields and fields["tags"] is not None:
            fields = dict(fields, tags=sorted({t.strip() for t in fields["tags"] if t.strip()}))
        customer = self._apply_update(customer, fields, ADMIN_FIELDS)
        self.logger.info(f"Customer {customer_id} updated by admin: {sorted(fields)}")
        return customer

    def list_customers(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        return [customer_dict(c) for c in self.repository.list_with_users(search)]

    def get_customer(self, customer_id: str) -> Dict[str, Any]:
        return self.overview(self._get(customer_id))
