# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the studio platform.

Handles booking conflict detection and validation:
- Loading sessions and expanded blocks around a time range
- Reporting sessions that a new block overlaps
- Enforcing advance notice for customer requests
- Deciding whether a slot accepts a given session type
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import BookingConflictException, InsufficientNoticeException
from ..core.timezone_utils import utc_now
from ..models.booking import BookingStatus
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .availability import (
    Occupancy,
    Slot,
    evaluate_occupancy,
    expand_block,
    occupancy_from_booking,
)
from .base import BaseService

logger = logging.getLogger(__name__)

_CONFLICTING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts and time validation.

    Centralizes conflict detection so booking requests, confirmations,
    manual sessions and block creation all apply the same rules.
    """

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def load_occupancies(
        self,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Occupancy]:
        """Sessions and block occurrences overlapping [start, end)."""
        sessions = self.repository.get_occupying_in_window(start, end, exclude_booking_id)
        occupancies = [occupancy_from_booking(b) for b in sessions]
        for block in self.repository.get_blocks_in_window(start, end):
            if block.id == exclude_booking_id:
                continue
            occupancies.extend(expand_block(block, start, end))
        return occupancies

    @BaseService.measure_operation("find_booking_conflicts")
    def find_booking_conflicts(
        self, teacher_id: Optional[str], intervals: List[Tuple[datetime, datetime]]
    ) -> List[Dict[str, Any]]:
        """
        Pending or confirmed sessions that overlap any of ``intervals``.

        With no teacher every teacher's sessions are considered (studio-wide
        block). Each booking is reported once.
        """
        conflicts: List[Dict[str, Any]] = []
        seen = set()
        for start, end in intervals:
            if teacher_id is None:
                sessions = self.repository.get_occupying_in_window(start, end)
            else:
                sessions = self.repository.get_occupying_for_teacher(teacher_id, start, end)
            for booking in sessions:
                if booking.status not in _CONFLICTING_STATUSES or booking.id in seen:
                    continue
                seen.add(booking.id)
                conflicts.append(
                    {
                        "booking_id": booking.id,
                        "customer_name": booking.customer.name if booking.customer else None,
                        "teacher_name": booking.teacher.name if booking.teacher else None,
                        "start_time": booking.start_time,
                        "end_time": booking.end_time,
                        "status": booking.status,
                    }
                )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} sessions overlapping a new block for "
                f"{teacher_id or 'the whole studio'}"
            )
        return conflicts

    def validate_advance_notice(self, start: datetime, now: Optional[datetime] = None) -> None:
        """Raise when a customer request starts too soon."""
        now = now or utc_now()
        hours_ahead = (start - now).total_seconds() / 3600
        if hours_ahead < settings.min_booking_hours_advance:
            raise InsufficientNoticeException(settings.min_booking_hours_advance, hours_ahead)

    def evaluate(
        self,
        teacher_id: Optional[str],
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> Slot:
        occupancies = self.load_occupancies(start, end, exclude_booking_id)
        return evaluate_occupancy(
            start, end, occupancies, teacher_id, settings.max_concurrent_teachers
        )

    @BaseService.measure_operation("ensure_slot_bookable")
    def ensure_slot_bookable(
        self,
        teacher_id: str,
        start: datetime,
        end: datetime,
        session_type: str,
        exclude_booking_id: Optional[str] = None,
    ) -> Slot:
        """
        Raise ``BookingConflictException`` unless the teacher can take a
        ``session_type`` session in [start, end).
        """
        slot = self.evaluate(teacher_id, start, end, exclude_booking_id)
        if not slot.is_bookable:
            raise BookingConflictException(
                details={"reason": slot.block_reason, "status": slot.status.value}
            )
        if not slot.allows(session_type):
            raise BookingConflictException(
                f"{session_type.capitalize()} sessions cannot be booked in this time slot",
                details={
                    "reason": "Only private or duo sessions are available",
                    "status": slot.status.value,
                    "allowed_types": slot.allowed_types,
                },
            )
        return slot
