# backend/app/models/payment.py
"""Payment received for a package sale."""

from sqlalchemy import Column, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import PaymentMethod
from ..database import Base
from .types import UTCDateTime
from .user import _utcnow


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(String(26), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    package_id = Column(String(26), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="THB")
    method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    paid_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    note = Column(Text, nullable=True)
    created_by = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    package = relationship("Package")

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.amount} {self.currency} via {self.method}>"
