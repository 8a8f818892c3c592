# backend/app/repositories/package_repository.py
"""
Package Repository for the studio platform.

Covers packages, their payments and customer package requests.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Query, Session, joinedload

from ..models.customer import Customer
from ..models.package import Package, PackageStatus
from ..models.package_request import PackageRequest
from ..models.payment import Payment
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PackageRepository(BaseRepository[Package]):
    def __init__(self, db: Session):
        super().__init__(db, Package)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Package.customer).joinedload(Customer.user))

    def list_for_customer(self, customer_id: str, status: Optional[str] = None) -> List[Package]:
        query = self.db.query(Package).filter(Package.customer_id == customer_id)
        if status:
            query = query.filter(Package.status == status)
        return self._run(query.order_by(Package.created_at.desc()), "listing customer packages")

    def list_active_past_validity(self, now: datetime) -> List[Package]:
        query = self.db.query(Package).filter(
            Package.status == PackageStatus.ACTIVE.value,
            Package.valid_to < now,
        )
        return self._run(query, "listing expired packages")

    def list_active_depleted(self) -> List[Package]:
        query = self.db.query(Package).filter(
            Package.status == PackageStatus.ACTIVE.value,
            Package.remaining_sessions <= 0,
        )
        return self._run(query, "listing depleted packages")

    def list_created_between(self, start: datetime, end: datetime) -> List[Package]:
        query = self._apply_eager_loading(self.db.query(Package)).filter(
            Package.created_at >= start,
            Package.created_at <= end,
        )
        return self._run(query.order_by(Package.created_at), "listing packages sold")

    def list_usable(self, now: datetime) -> List[Package]:
        """Active packages that still have sessions and have not run out of validity."""
        query = self._apply_eager_loading(self.db.query(Package)).filter(
            Package.status == PackageStatus.ACTIVE.value,
            Package.remaining_sessions > 0,
            Package.valid_to > now,
        )
        return self._run(query.order_by(Package.customer_id), "listing usable packages")

    def list_all(self) -> List[Package]:
        return self._run(self.db.query(Package).order_by(Package.created_at), "listing packages")


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)


class PackageRequestRepository(BaseRepository[PackageRequest]):
    def __init__(self, db: Session):
        super().__init__(db, PackageRequest)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(PackageRequest.customer).joinedload(Customer.user))

    def list_for_customer(self, customer_id: str) -> List[PackageRequest]:
        query = self.db.query(PackageRequest).filter(PackageRequest.customer_id == customer_id)
        return self._run(query.order_by(PackageRequest.requested_at.desc()), "listing requests")

    def list_by_status(self, status: Optional[str] = None, oldest_first: bool = False) -> List[PackageRequest]:
        query = self._apply_eager_loading(self.db.query(PackageRequest))
        if status:
            query = query.filter(PackageRequest.status == status)
        order = PackageRequest.requested_at.asc() if oldest_first else PackageRequest.requested_at.desc()
        return self._run(query.order_by(order), "listing requests")
