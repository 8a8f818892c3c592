# backend/app/services/availability.py
"""
Slot availability rules for the studio calendar.

Pure functions over lightweight occupancy records so the rules can be
evaluated without a database. ``AvailabilityService`` and
``ConflictChecker`` load the records and call into this module.

A slot is evaluated in this order:

1. Past or inside the advance-notice window -> blocked
2. Overlapping studio-wide block -> blocked
3. Requested teacher already busy (block or session) -> blocked
4. Other teachers' sessions: group -> blocked, capacity reached -> blocked,
   otherwise partial (private/duo only)
5. Otherwise available for every session type
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..core.enums import RecurrenceFrequency, SessionType
from ..core.timezone_utils import get_studio_timezone, studio_datetime, to_studio_time

ALL_TYPES = [SessionType.PRIVATE.value, SessionType.DUO.value, SessionType.GROUP.value]
PARTIAL_TYPES = [SessionType.PRIVATE.value, SessionType.DUO.value]

REASON_PAST = "Past time slot"
REASON_NOTICE = "Insufficient advance notice"
REASON_STUDIO_CLOSED = "Studio closed"
REASON_TEACHER_UNAVAILABLE = "Teacher unavailable"
REASON_FULLY_BOOKED = "Fully booked"
REASON_GROUP_CLASS = "Studio group class in session"
REASON_CAPACITY = "Studio at capacity"

_RECURRENCE_STEP = {
    RecurrenceFrequency.DAILY.value: timedelta(days=1),
    RecurrenceFrequency.WEEKLY.value: timedelta(days=7),
}


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    PARTIAL = "partial"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class Occupancy:
    """One concrete interval held by a teacher, or by the whole studio when teacher_id is None."""

    id: str
    teacher_id: Optional[str]
    start: datetime
    end: datetime
    type: str
    status: Optional[str] = None
    teacher_name: Optional[str] = None
    block_reason: Optional[str] = None

    @property
    def is_block(self) -> bool:
        return self.type == SessionType.BLOCKED.value

    @property
    def is_studio_wide(self) -> bool:
        return self.is_block and self.teacher_id is None


@dataclass
class Slot:
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    allowed_types: List[str] = field(default_factory=list)
    block_reason: Optional[str] = None
    teacher_count: int = 0
    bookings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_bookable(self) -> bool:
        return self.status != SlotStatus.BLOCKED

    def allows(self, session_type: str) -> bool:
        return session_type in self.allowed_types

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
            "allowed_types": list(self.allowed_types),
            "block_reason": self.block_reason,
            "teacher_count": self.teacher_count,
            "bookings": list(self.bookings),
        }


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap; touching intervals do not overlap."""
    return a_start < b_end and a_end > b_start


def occupancy_from_booking(booking: Any) -> Occupancy:
    teacher = getattr(booking, "teacher", None)
    return Occupancy(
        id=booking.id,
        teacher_id=booking.teacher_id,
        start=booking.start_time,
        end=booking.end_time,
        type=booking.type,
        status=booking.status,
        teacher_name=teacher.name if teacher is not None else None,
        block_reason=getattr(booking, "block_reason", None),
    )


def expand_block(block: Any, window_start: datetime, window_end: datetime) -> List[Occupancy]:
    """
    Concrete occurrences of a block that overlap [window_start, window_end).

    Single and multi-day blocks yield themselves. Recurring blocks repeat on
    the same studio wall-clock time every day or week, from the first
    occurrence until ``recurrence_until`` (open-ended when unset).
    """
    base = occupancy_from_booking(block)
    step = _RECURRENCE_STEP.get(getattr(block, "recurrence_frequency", None) or "")
    if step is None:
        return [base] if overlaps(base.start, base.end, window_start, window_end) else []

    until = getattr(block, "recurrence_until", None)
    duration = base.end - base.start
    local_start = to_studio_time(base.start).replace(tzinfo=None)
    tz = get_studio_timezone()

    # Skip whole periods that end before the window
    k = max(0, (window_start - base.end) // step)
    occurrences: List[Occupancy] = []
    while True:
        start = tz.localize(local_start + k * step).astimezone(base.start.tzinfo)
        if start >= window_end or (until is not None and start > until):
            break
        end = start + duration
        if overlaps(start, end, window_start, window_end):
            occurrences.append(
                Occupancy(
                    id=base.id,
                    teacher_id=base.teacher_id,
                    start=start,
                    end=end,
                    type=base.type,
                    status=base.status,
                    teacher_name=base.teacher_name,
                    block_reason=base.block_reason,
                )
            )
        k += 1
    return occurrences


def evaluate_occupancy(
    slot_start: datetime,
    slot_end: datetime,
    occupancies: Iterable[Occupancy],
    teacher_id: Optional[str],
    max_concurrent_teachers: int,
) -> Slot:
    """Classify a slot from the intervals occupying it, ignoring the clock."""
    overlapping = [o for o in occupancies if overlaps(o.start, o.end, slot_start, slot_end)]

    for occ in overlapping:
        if occ.is_studio_wide:
            return Slot(
                slot_start,
                slot_end,
                SlotStatus.BLOCKED,
                block_reason=occ.block_reason or REASON_STUDIO_CLOSED,
            )

    sessions = [o for o in overlapping if not o.is_block]
    booking_summaries = [
        {"teacher_id": o.teacher_id, "teacher_name": o.teacher_name, "type": o.type}
        for o in sessions
    ]
    busy_teachers = {o.teacher_id for o in sessions}

    if teacher_id is not None:
        for occ in overlapping:
            if occ.teacher_id != teacher_id:
                continue
            if occ.is_block:
                reason = occ.block_reason or REASON_TEACHER_UNAVAILABLE
            else:
                reason = REASON_FULLY_BOOKED
            return Slot(
                slot_start,
                slot_end,
                SlotStatus.BLOCKED,
                block_reason=reason,
                teacher_count=len(busy_teachers),
                bookings=booking_summaries,
            )

    others = [o for o in sessions if o.teacher_id != teacher_id]
    if others:
        other_teachers = {o.teacher_id for o in others}
        reason = None
        if any(o.type == SessionType.GROUP.value for o in others):
            reason = REASON_GROUP_CLASS
        elif len(other_teachers) >= max_concurrent_teachers:
            reason = REASON_CAPACITY
        if reason:
            return Slot(
                slot_start,
                slot_end,
                SlotStatus.BLOCKED,
                block_reason=reason,
                teacher_count=len(other_teachers),
                bookings=booking_summaries,
            )
        return Slot(
            slot_start,
            slot_end,
            SlotStatus.PARTIAL,
            allowed_types=list(PARTIAL_TYPES),
            teacher_count=len(other_teachers),
            bookings=booking_summaries,
        )

    return Slot(slot_start, slot_end, SlotStatus.AVAILABLE, allowed_types=list(ALL_TYPES))


def evaluate_slot(
    slot_start: datetime,
    slot_end: datetime,
    occupancies: Iterable[Occupancy],
    teacher_id: Optional[str],
    now: datetime,
    min_advance_hours: float,
    max_concurrent_teachers: int,
) -> Slot:
    """Classify a slot for a customer looking at the calendar at ``now``."""
    if slot_start <= now:
        return Slot(slot_start, slot_end, SlotStatus.BLOCKED, block_reason=REASON_PAST)
    if slot_start < now + timedelta(hours=min_advance_hours):
        return Slot(slot_start, slot_end, SlotStatus.BLOCKED, block_reason=REASON_NOTICE)
    return evaluate_occupancy(slot_start, slot_end, occupancies, teacher_id, max_concurrent_teachers)


def generate_day_slots(
    day: date, open_hour: int, close_hour: int, duration_minutes: int
) -> List[tuple[datetime, datetime]]:
    """Hourly slot boundaries (UTC) for one studio day; every slot ends by closing time."""
    closing = studio_datetime(day, time(0, 0)) + timedelta(hours=close_hour)
    duration = timedelta(minutes=duration_minutes)
    slots = []
    for hour in range(open_hour, close_hour):
        start = studio_datetime(day, time(hour, 0))
        end = start + duration
        if end > closing:
            break
        slots.append((start, end))
    return slots
