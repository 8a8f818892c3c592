"""Availability calendar and time block schemas."""

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import Field, model_validator

from .base import StandardizedModel, StrictRequestModel


class SlotBooking(StandardizedModel):
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None
    type: str


class SlotResponse(StandardizedModel):
    start_time: datetime
    end_time: datetime
    status: Literal["available", "partial", "blocked"]
    allowed_types: List[str] = Field(default_factory=list)
    block_reason: Optional[str] = None
    teacher_count: int = 0
    bookings: List[SlotBooking] = Field(default_factory=list)


class DayAvailability(StandardizedModel):
    date: date
    slots: List[SlotResponse]


class AvailabilityResponse(StandardizedModel):
    teacher_id: Optional[str] = None
    from_date: date
    to_date: date
    days: List[DayAvailability]


class RecurringOptions(StrictRequestModel):
    enabled: bool = False
    frequency: Optional[Literal["daily", "weekly"]] = None
    until: Optional[Union[date, datetime]] = None


class BlockCreate(StrictRequestModel):
    """
    Block a teacher's time, or the whole studio with ``all_teachers``.

    Naive datetimes are read as studio local time.
    """

    teacher_id: Optional[str] = None
    all_teachers: bool = False
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = Field(None, max_length=255)
    recurring: Optional[RecurringOptions] = None

    @model_validator(mode="after")
    def _check_order(self) -> "BlockCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BlockResponse(StandardizedModel):
    id: str
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    block_reason: Optional[str] = None
    recurrence_frequency: Optional[str] = None
    recurrence_until: Optional[datetime] = None
    created_by: Optional[str] = None


class BlockConflict(StandardizedModel):
    booking_id: str
    customer_name: Optional[str] = None
    teacher_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: str


class BlockCreateResponse(StandardizedModel):
    blocks: List[BlockResponse]
    conflicts: List[BlockConflict]
