# backend/app/models/booking.py
"""
Booking model for the studio platform.

A booking row is either a customer session (private, duo or group) or a
time block (type ``blocked``). Blocks have no customer; a block without a
teacher closes the whole studio. Blocks may repeat daily or weekly until
``recurrence_until``; occurrences are expanded at query time.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import SessionType
from ..database import Base
from .types import UTCDateTime
from .user import _utcnow

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Requested by customer, awaiting confirmation
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "noShow"
    CANCELLATION_REQUESTED = "cancellationRequested"

    @classmethod
    def occupying(cls) -> list["BookingStatus"]:
        """Statuses that hold a teacher's time."""
        return [cls.PENDING, cls.CONFIRMED, cls.CANCELLATION_REQUESTED]


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    customer_id = Column(String(26), ForeignKey("customers.id", ondelete="CASCADE"), nullable=True)
    teacher_id = Column(String(26), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=True)
    package_id = Column(String(26), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)

    type = Column(String(20), nullable=False, default=SessionType.PRIVATE.value)
    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False, index=True)
    location = Column(String(255), nullable=True)
    status = Column(String(30), nullable=False, default=BookingStatus.PENDING.value, index=True)

    is_requested_by_customer = Column(Boolean, nullable=False, default=False)
    request_created_at = Column(UTCDateTime, nullable=True)
    confirmed_at = Column(UTCDateTime, nullable=True)
    confirmed_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    auto_confirmed = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    attendance_marked_at = Column(UTCDateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    package_deducted = Column(Boolean, nullable=False, default=False)

    # Block-only fields
    block_reason = Column(String(255), nullable=True)
    recurrence_frequency = Column(String(10), nullable=True)
    recurrence_until = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    customer = relationship("Customer")
    teacher = relationship("Teacher")
    package = relationship("Package", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_time_order"),
        Index("ix_bookings_teacher_window", "teacher_id", "start_time", "end_time"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        logger.info(
            f"Creating {kwargs.get('type', 'booking')} for customer {self.customer_id} "
            f"with teacher {self.teacher_id}"
        )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: customer={self.customer_id}, teacher={self.teacher_id}, "
            f"type={self.type}, time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_block(self) -> bool:
        return self.type == SessionType.BLOCKED.value

    @property
    def is_cancellable(self) -> bool:
        return self.status in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)

    def confirm(self, confirmed_by: Optional[str], *, auto: bool = False) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        self.confirmed_by = confirmed_by
        self.auto_confirmed = auto
        logger.info(f"Booking {self.id} confirmed (auto={auto})")

    def cancel(self, reason: Optional[str] = None) -> None:
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled")

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        teacher_name = self.teacher.name if self.teacher is not None else None
        customer_name = self.customer.name if self.customer is not None else None
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": customer_name,
            "teacher_id": self.teacher_id,
            "teacher_name": teacher_name,
            "package_id": self.package_id,
            "type": self.type,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "location": self.location,
            "status": self.status,
            "is_requested_by_customer": self.is_requested_by_customer,
            "request_created_at": self.request_created_at,
            "confirmed_at": self.confirmed_at,
            "confirmed_by": self.confirmed_by,
            "auto_confirmed": self.auto_confirmed,
            "notes": self.notes,
            "attendance_marked_at": self.attendance_marked_at,
            "cancellation_reason": self.cancellation_reason,
            "package_deducted": self.package_deducted,
            "created_at": self.created_at,
        }

    def block_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher.name if self.teacher is not None else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "block_reason": self.block_reason,
            "recurrence_frequency": self.recurrence_frequency,
            "recurrence_until": self.recurrence_until,
            "created_by": self.created_by,
        }
