# backend/app/services/availability_service.py
"""
Availability Service for the studio platform.

Builds the customer-facing calendar (hourly slots per studio day) and
manages teacher time blocks: single, multi-day and recurring, for one
teacher or the whole studio.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RecurrenceFrequency, SessionType
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..core.timezone_utils import (
    ensure_utc,
    studio_datetime,
    studio_day_bounds,
    to_studio_time,
    utc_now,
)
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .availability import evaluate_slot, expand_block, generate_day_slots, overlaps
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_REASON = "Time blocked"
DEFAULT_MULTI_DAY_REASON = "Holiday/Time off"


class AvailabilityService(BaseService):
    """Calendar availability and teacher time blocks."""

    def __init__(self, db: Session, conflict_checker: Optional[ConflictChecker] = None):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.booking_repository)

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_availability")
    def get_availability(
        self,
        from_date: date,
        to_date: date,
        teacher_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Slots for every studio day in [from_date, to_date].

        Without a teacher only studio-level occupancy (studio-wide blocks,
        group classes, capacity) is evaluated.
        """
        if from_date > to_date:
            raise ValidationException("from_date must be on or before to_date")
        day_count = (to_date - from_date).days + 1
        if day_count > settings.max_availability_days:
            raise ValidationException(
                f"Availability can be requested for at most {settings.max_availability_days} days",
                details={"days": day_count},
            )
        if teacher_id and not self.teacher_repository.get_by_id(teacher_id):
            raise NotFoundException("Teacher not found")

        now = now or utc_now()
        window_start, _ = studio_day_bounds(from_date)
        _, window_end = studio_day_bounds(to_date)
        occupancies = self.conflict_checker.load_occupancies(window_start, window_end)

        days = []
        for offset in range(day_count):
            day = from_date + timedelta(days=offset)
            slots = [
                evaluate_slot(
                    start,
                    end,
                    occupancies,
                    teacher_id,
                    now,
                    settings.min_booking_hours_advance,
                    settings.max_concurrent_teachers,
                ).to_dict()
                for start, end in generate_day_slots(
                    day,
                    settings.studio_open_hour,
                    settings.studio_close_hour,
                    settings.session_duration_minutes,
                )
            ]
            days.append({"date": day, "slots": slots})

        return {
            "teacher_id": teacher_id,
            "from_date": from_date,
            "to_date": to_date,
            "days": days,
        }

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _resolve_block_teacher(
        self, actor: User, teacher_id: Optional[str], all_teachers: bool
    ) -> Optional[str]:
        if actor.is_teacher:
            own = actor.teacher_profile
            if own is None:
                raise ForbiddenException("Teacher profile not found")
            if all_teachers or (teacher_id and teacher_id != own.id):
                raise ForbiddenException("Teachers can only block their own time")
            return own.id

        if all_teachers:
            return None
        if not teacher_id:
            raise ValidationException("teacher_id is required unless all_teachers is set")
        if not self.teacher_repository.get_by_id(teacher_id):
            raise NotFoundException("Teacher not found")
        return teacher_id

    @staticmethod
    def _day_intervals(start: datetime, end: datetime) -> List[tuple[datetime, datetime]]:
        """Split a multi-day range into one open-to-close interval per studio day."""
        first = to_studio_time(start).date()
        last = to_studio_time(end - timedelta(microseconds=1)).date()
        intervals = []
        day = first
        while day <= last:
            intervals.append(
                (
                    studio_datetime(day, time(settings.studio_open_hour, 0)),
                    studio_datetime(day, time(0, 0)) + timedelta(hours=settings.studio_close_hour),
                )
            )
            day += timedelta(days=1)
        return intervals

    @BaseService.measure_operation("create_block")
    def create_block(
        self,
        actor: User,
        start_time: datetime,
        end_time: datetime,
        teacher_id: Optional[str] = None,
        all_teachers: bool = False,
        reason: Optional[str] = None,
        recurring: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Block time for a teacher (or the whole studio).

        Existing pending or confirmed sessions inside the blocked time are
        reported back as conflicts; they are left for the admin to resolve.
        """
        start = ensure_utc(start_time)
        end = ensure_utc(end_time)
        if end <= start:
            raise ValidationException("End time must be after start time")

        block_teacher_id = self._resolve_block_teacher(actor, teacher_id, all_teachers)

        multi_day = to_studio_time(start).date() != to_studio_time(
            end - timedelta(microseconds=1)
        ).date()

        frequency = None
        until = None
        if recurring and recurring.get("enabled"):
            if multi_day:
                raise ValidationException("A block cannot be both multi-day and recurring")
            frequency = recurring.get("frequency")
            if frequency not in {f.value for f in RecurrenceFrequency}:
                raise ValidationException("Recurring frequency must be daily or weekly")
            until_day = recurring.get("until")
            if until_day is not None:
                if isinstance(until_day, datetime):
                    until_day = to_studio_time(ensure_utc(until_day)).date()
                if until_day < to_studio_time(start).date():
                    raise ValidationException("Recurring 'until' must be on or after the start date")
                until = studio_datetime(until_day, time(23, 59, 59))

        if multi_day:
            intervals = self._day_intervals(start, end)
            default_reason = DEFAULT_MULTI_DAY_REASON
        else:
            intervals = [(start, end)]
            default_reason = DEFAULT_BLOCK_REASON

        with self.transaction():
            blocks = []
            for block_start, block_end in intervals:
                block = Booking(
                    teacher_id=block_teacher_id,
                    customer_id=None,
                    type=SessionType.BLOCKED.value,
                    start_time=block_start,
                    end_time=block_end,
                    status=BookingStatus.CONFIRMED.value,
                    block_reason=(reason or "").strip() or default_reason,
                    recurrence_frequency=frequency,
                    recurrence_until=until,
                    created_by=actor.id,
                )
                self.db.add(block)
                blocks.append(block)
            self.db.flush()

        for block in blocks:
            self.db.refresh(block)

        conflicts = self.conflict_checker.find_booking_conflicts(block_teacher_id, intervals)
        self.logger.info(
            f"User {actor.id} blocked {len(blocks)} interval(s) for "
            f"{block_teacher_id or 'the whole studio'} ({len(conflicts)} conflicts)"
        )
        return {"blocks": [b.block_dict() for b in blocks], "conflicts": conflicts}

    @BaseService.measure_operation("delete_block")
    def delete_block(self, actor: User, block_id: str) -> None:
        block = self.booking_repository.get_by_id(block_id)
        if block is None or not block.is_block:
            raise NotFoundException("Block not found")
        if actor.is_teacher:
            own = actor.teacher_profile
            if own is None or block.teacher_id != own.id:
                raise ForbiddenException("Teachers can only delete their own blocks")

        with self.transaction():
            self.db.delete(block)
        self.logger.info(f"Block {block_id} deleted by {actor.id}")

    @BaseService.measure_operation("list_blocks")
    def list_blocks(
        self,
        teacher_id: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        expand: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Blocks visible to a teacher (their own plus studio-wide ones).

        With a date range and ``expand`` recurring blocks are returned as one
        entry per occurrence inside the range.
        """
        start = studio_day_bounds(from_date)[0] if from_date else None
        end = studio_day_bounds(to_date)[1] if to_date else None
        if start is not None and end is None:
            end = start + timedelta(days=settings.max_availability_days)
        if end is not None and start is None:
            start = end - timedelta(days=settings.max_availability_days)

        blocks = self.booking_repository.list_blocks(teacher_id, start, end)
        if not (expand and start is not None and end is not None):
            return [b.block_dict() for b in blocks]

        entries = []
        for block in blocks:
            for occ in expand_block(block, start, end):
                if not overlaps(occ.start, occ.end, start, end):
                    continue
                entry = block.block_dict()
                entry["start_time"] = occ.start
                entry["end_time"] = occ.end
                entries.append(entry)
        entries.sort(key=lambda e: e["start_time"])
        return entries
