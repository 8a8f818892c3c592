# backend/app/models/customer.py
"""Customer profile attached to a customer user account."""

from sqlalchemy import Column, Date, ForeignKey, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import StringArrayType, UTCDateTime
from .user import _utcnow


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(10), nullable=True)
    profession = Column(String(80), nullable=True)
    health_notes = Column(Text, nullable=True)
    preferred_teacher_id = Column(String(26), ForeignKey("teachers.id"), nullable=True)
    emergency_contact_name = Column(String(120), nullable=True)
    emergency_contact_phone = Column(String(32), nullable=True)
    tags = Column(StringArrayType, nullable=True, default=list)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    user = relationship("User", back_populates="customer_profile")
    preferred_teacher = relationship("Teacher", foreign_keys=[preferred_teacher_id])
    packages = relationship("Package", back_populates="customer", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Customer {self.id} user={self.user_id}>"

    @property
    def name(self) -> str:
        return self.user.name if self.user else "Unknown"
