"""
Booking schemas for the studio platform.

Datetimes without an offset are interpreted as studio local time by the
service layer.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from ..core.constants import MAX_NOTE_LENGTH, MAX_REASON_LENGTH
from .base import StandardizedModel, StrictRequestModel


class BookingRequestCreate(StrictRequestModel):
    """Customer booking request against one of their packages."""

    package_id: str
    start_time: datetime
    teacher_id: Optional[str] = Field(
        None, description="Defaults to the customer's preferred teacher"
    )
    duration_minutes: Optional[int] = Field(None, ge=15, le=240)
    notes: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)


class BookingConfirm(StrictRequestModel):
    teacher_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)

    @model_validator(mode="after")
    def _check_order(self) -> "BookingConfirm":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingReject(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class AttendanceUpdate(StrictRequestModel):
    status: Literal["completed", "noShow", "cancelled"]
    notes: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)


class ManualSessionCreate(StrictRequestModel):
    customer_id: str
    package_id: str
    start_time: datetime
    notes: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)
    teacher_id: Optional[str] = Field(None, description="Required when an admin records the session")


class BookingResponse(StandardizedModel):
    id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None
    package_id: Optional[str] = None
    type: str
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    status: str
    is_requested_by_customer: bool = False
    request_created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None
    auto_confirmed: bool = False
    notes: Optional[str] = None
    attendance_marked_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    package_deducted: bool = False
    created_at: Optional[datetime] = None


class BookingListResponse(StandardizedModel):
    bookings: List[BookingResponse]
    total: int


class CancelBookingResponse(StandardizedModel):
    booking: BookingResponse
    message: str
    requires_approval: bool
