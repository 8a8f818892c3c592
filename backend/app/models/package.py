# backend/app/models/package.py
"""
Session package model.

A package is a purchased bundle of sessions of one type with a validity
window. ``remaining_sessions`` is decremented when a session is attended
(or marked no-show) and restored when a deducted session is cancelled.
"""

from datetime import datetime
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime
from .user import _utcnow

logger = logging.getLogger(__name__)


class PackageStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    FROZEN = "frozen"


class Package(Base):
    __tablename__ = "packages"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(
        String(26), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False)
    total_sessions = Column(Integer, nullable=False)
    remaining_sessions = Column(Integer, nullable=False)
    valid_from = Column(UTCDateTime, nullable=False)
    valid_to = Column(UTCDateTime, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="THB")
    status = Column(String(20), nullable=False, default=PackageStatus.ACTIVE.value, index=True)
    note = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow, index=True)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    customer = relationship("Customer", back_populates="packages")
    bookings = relationship("Booking", back_populates="package")

    __table_args__ = (
        CheckConstraint("total_sessions > 0", name="check_package_total_positive"),
        CheckConstraint("remaining_sessions >= 0", name="check_package_remaining_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Package {self.id}: {self.name} type={self.type} "
            f"{self.remaining_sessions}/{self.total_sessions} status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == PackageStatus.ACTIVE.value

    def covers(self, moment: datetime) -> bool:
        """Whether ``moment`` falls inside the validity window."""
        return self.valid_from <= moment <= self.valid_to

    def deduct_session(self) -> None:
        """Use one session, flipping to USED when none remain."""
        self.remaining_sessions = max(int(self.remaining_sessions or 0) - 1, 0)
        if self.remaining_sessions == 0 and self.status == PackageStatus.ACTIVE.value:
            self.status = PackageStatus.USED.value
            logger.info(f"Package {self.id} fully used")

    def restore_session(self) -> None:
        """Give back one session after a deducted booking is cancelled."""
        self.remaining_sessions = min(int(self.remaining_sessions or 0) + 1, self.total_sessions)
        if self.status == PackageStatus.USED.value and self.remaining_sessions > 0:
            self.status = PackageStatus.ACTIVE.value
            logger.info(f"Package {self.id} reactivated after session refund")

    def to_dict(self, usage: Optional[dict[str, int]] = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "customer_id": self.customer_id,
            "name": self.name,
            "type": self.type,
            "total_sessions": self.total_sessions,
            "remaining_sessions": self.remaining_sessions,
            "valid_from": self.valid_from,
            "valid_to": self.valid_to,
            "price": float(self.price or 0),
            "currency": self.currency,
            "status": self.status,
            "note": self.note,
            "created_at": self.created_at,
        }
        if usage is not None:
            data.update(usage)
        return data
