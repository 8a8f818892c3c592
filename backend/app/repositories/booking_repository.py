# backend/app/repositories/booking_repository.py
"""
Booking Repository for the studio platform.

Handles data access for customer sessions and time blocks. Interval
queries use the half-open overlap test ``start < other_end and end > other_start``.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import SessionType
from ..models.booking import Booking, BookingStatus
from ..models.customer import Customer
from ..models.teacher import Teacher
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_OCCUPYING = [status.value for status in BookingStatus.occupying()]
_BLOCKED = SessionType.BLOCKED.value


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking and block data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.customer).joinedload(Customer.user),
            joinedload(Booking.teacher).joinedload(Teacher.user),
            joinedload(Booking.package),
        )

    def _sessions(self) -> Query:
        return self._apply_eager_loading(self.db.query(Booking)).filter(Booking.type != _BLOCKED)

    # Conflict and availability queries

    def get_occupying_for_teacher(
        self,
        teacher_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """Sessions of one teacher that hold time overlapping [start, end)."""
        query = self._sessions().filter(
            Booking.teacher_id == teacher_id,
            Booking.status.in_(_OCCUPYING),
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return self._run(query, "getting teacher conflicts")

    def get_occupying_in_window(
        self, start: datetime, end: datetime, exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """All sessions (any teacher) that hold time overlapping [start, end)."""
        query = self._sessions().filter(
            Booking.status.in_(_OCCUPYING),
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return self._run(query.order_by(Booking.start_time), "getting window occupancy")

    def get_blocks_in_window(self, start: datetime, end: datetime) -> List[Booking]:
        """
        Blocks that may produce an occurrence inside [start, end).

        Recurring blocks are returned when their series is still running at
        ``start``; callers expand them into concrete occurrences.
        """
        query = (
            self.db.query(Booking)
            .options(joinedload(Booking.teacher).joinedload(Teacher.user))
            .filter(
                Booking.type == _BLOCKED,
                Booking.status != BookingStatus.CANCELLED.value,
                Booking.start_time < end,
                or_(
                    Booking.end_time > start,
                    (Booking.recurrence_frequency.isnot(None))
                    & (
                        Booking.recurrence_until.is_(None)
                        | (Booking.recurrence_until >= start)
                    ),
                ),
            )
        )
        return self._run(query.order_by(Booking.start_time), "getting blocks")

    def list_blocks(
        self,
        teacher_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Booking]:
        if start is not None and end is not None:
            blocks = self.get_blocks_in_window(start, end)
        else:
            blocks = self._run(
                self.db.query(Booking)
                .filter(Booking.type == _BLOCKED, Booking.status != BookingStatus.CANCELLED.value)
                .order_by(Booking.start_time),
                "listing blocks",
            )
        if teacher_id:
            blocks = [b for b in blocks if b.teacher_id in (teacher_id, None)]
        return blocks

    # Listing queries

    def list_for_customer(
        self,
        customer_id: str,
        status: Optional[str] = None,
        starting_after: Optional[datetime] = None,
    ) -> List[Booking]:
        query = self._sessions().filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status)
        if starting_after is not None:
            query = query.filter(Booking.start_time >= starting_after)
            return self._run(query.order_by(Booking.start_time.asc()), "listing customer bookings")
        return self._run(query.order_by(Booking.start_time.desc()), "listing customer bookings")

    def list_pending_requests(self) -> List[Booking]:
        query = self._sessions().filter(Booking.status == BookingStatus.PENDING.value)
        return self._run(
            query.order_by(Booking.request_created_at.asc(), Booking.created_at.asc()),
            "listing pending bookings",
        )

    def list_filtered(
        self,
        status: Optional[str] = None,
        teacher_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
    ) -> List[Booking]:
        query = self._sessions()
        if status:
            query = query.filter(Booking.status == status)
        if teacher_id:
            query = query.filter(Booking.teacher_id == teacher_id)
        if customer_id:
            query = query.filter(Booking.customer_id == customer_id)
        if start_from is not None:
            query = query.filter(Booking.start_time >= start_from)
        if start_to is not None:
            query = query.filter(Booking.start_time <= start_to)
        return self._run(query.order_by(Booking.start_time.asc()), "listing bookings")

    def list_for_teacher(
        self,
        teacher_id: str,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        customer_id: Optional[str] = None,
    ) -> List[Booking]:
        """A teacher's sessions, excluding cancelled ones."""
        query = self._sessions().filter(
            Booking.teacher_id == teacher_id,
            Booking.status != BookingStatus.CANCELLED.value,
        )
        if start_from is not None:
            query = query.filter(Booking.start_time >= start_from)
        if start_to is not None:
            query = query.filter(Booking.start_time < start_to)
        if customer_id:
            query = query.filter(Booking.customer_id == customer_id)
        return self._run(query.order_by(Booking.start_time.asc()), "listing teacher sessions")

    def list_for_package(self, package_id: str) -> List[Booking]:
        return self._run(
            self.db.query(Booking).filter(Booking.package_id == package_id),
            "listing package bookings",
        )

    def count_active_for_package(self, package_id: str) -> int:
        return (
            self.db.query(Booking)
            .filter(
                Booking.package_id == package_id,
                Booking.status.in_(_OCCUPYING),
            )
            .count()
        )

    def count_undeducted_for_package(
        self, package_id: str, exclude_booking_id: Optional[str] = None
    ) -> int:
        """Occupying bookings that will still consume a session from the package."""
        query = self.db.query(Booking).filter(
            Booking.package_id == package_id,
            Booking.status.in_(_OCCUPYING),
            Booking.package_deducted.is_(False),
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.count()

    # Worker queries

    def list_stale_pending_requests(self, requested_before: datetime) -> List[Booking]:
        query = self._sessions().filter(
            Booking.status == BookingStatus.PENDING.value,
            Booking.is_requested_by_customer.is_(True),
            Booking.request_created_at <= requested_before,
        )
        return self._run(query.order_by(Booking.request_created_at), "listing stale requests")

    def list_confirmed_starting_between(self, start: datetime, end: datetime) -> List[Booking]:
        query = self._sessions().filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.start_time >= start,
            Booking.start_time <= end,
        )
        return self._run(query.order_by(Booking.start_time), "listing upcoming confirmed")

    def list_completed_between(self, start: datetime, end: datetime) -> List[Booking]:
        query = self._sessions().filter(
            Booking.status == BookingStatus.COMPLETED.value,
            Booking.start_time >= start,
            Booking.start_time <= end,
        )
        return self._run(query, "listing completed sessions")

    def latest_booked_start(self, customer_id: str) -> Optional[datetime]:
        """Start of the customer's most recent attended or still-standing session."""
        with self._translate_errors("finding latest session"):
            latest = (
                self.db.query(Booking)
                .filter(
                    Booking.customer_id == customer_id,
                    Booking.type != _BLOCKED,
                    Booking.status.in_(_OCCUPYING + [BookingStatus.COMPLETED.value]),
                )
                .order_by(Booking.start_time.desc())
                .first()
            )
            return latest.start_time if latest is not None else None

    def list_no_shows_between(self, start: datetime, end: datetime) -> List[Booking]:
        query = self._sessions().filter(
            Booking.status == BookingStatus.NO_SHOW.value,
            Booking.start_time >= start,
            Booking.start_time <= end,
        )
        return self._run(query.order_by(Booking.start_time), "listing no-shows")

    # Analytics queries

    def list_with_statuses(
        self,
        statuses: List[str],
        start: datetime,
        end: datetime,
        teacher_id: Optional[str] = None,
    ) -> List[Booking]:
        """Sessions in the given statuses starting within [start, end], newest first."""
        query = self._sessions().filter(
            Booking.status.in_(statuses),
            Booking.start_time >= start,
            Booking.start_time <= end,
        )
        if teacher_id:
            query = query.filter(Booking.teacher_id == teacher_id)
        return self._run(query.order_by(Booking.start_time.desc()), "listing sessions by status")

    def count_sessions(self, status: Optional[str] = None) -> int:
        with self._translate_errors("counting"):
            query = self.db.query(Booking).filter(Booking.type != _BLOCKED)
            if status:
                query = query.filter(Booking.status == status)
            return query.count()
