# backend/app/models/package_request.py
"""Customer request to buy a package, reviewed by an admin."""

from enum import Enum
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime
from .user import _utcnow


class PackageRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PackageRequest(Base):
    __tablename__ = "package_requests"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(
        String(26), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    package_type = Column(String(20), nullable=False)
    sessions = Column(Integer, nullable=False)
    requested_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    status = Column(
        String(20), nullable=False, default=PackageRequestStatus.PENDING.value, index=True
    )
    reviewed_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(UTCDateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    package_id = Column(String(26), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)

    customer = relationship("Customer")

    def __repr__(self) -> str:
        return f"<PackageRequest {self.id} {self.package_type}x{self.sessions} {self.status}>"

    @property
    def is_pending(self) -> bool:
        return self.status == PackageRequestStatus.PENDING.value

    @property
    def customer_name(self) -> Optional[str]:
        return self.customer.name if self.customer is not None else None
