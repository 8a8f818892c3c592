# backend/app/services/booking_service.py
"""
Booking Service for the studio platform.

Owns the booking lifecycle:

    pending -> confirmed -> completed | noShow
       |           |-> cancellationRequested -> cancelled | confirmed
       '-----------'-> cancelled

Package sessions are deducted once per booking (``package_deducted``):
on attendance for customer requests, immediately for manual sessions.
Cancelling a deducted booking gives the session back.

Notifications are best effort and sent after the booking change commits.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    AUTO_CONFIRM_NOTE,
    MANUAL_SESSION_DURATION_MINUTES,
    MANUAL_SESSION_FIRST_HOUR,
    MANUAL_SESSION_LAST_HOUR,
)
from ..core.enums import InAppNotificationType, NotificationType, SessionType
from ..core.exceptions import (
    BookingConflictException,
    CancellationWindowClosedException,
    ForbiddenException,
    NotFoundException,
    PackageUnavailableException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, format_studio_date, to_studio_time, utc_now
from ..models.booking import Booking, BookingStatus
from ..models.customer import Customer
from ..models.package import Package
from ..models.teacher import Teacher
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService, booking_payload

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = {
    BookingStatus.COMPLETED.value,
    BookingStatus.NO_SHOW.value,
    BookingStatus.CANCELLED.value,
}
DEDUCTING_STATUSES = {BookingStatus.COMPLETED.value, BookingStatus.NO_SHOW.value}


class BookingService(BaseService):
    """Service layer for booking operations."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.notification_service = notification_service or NotificationService(db)

    # ------------------------------------------------------------------
    # Lookups and guards
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None or booking.is_block:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _customer_of(user: User) -> Customer:
        if user.customer_profile is None:
            raise NotFoundException("Customer profile not found")
        return user.customer_profile

    @staticmethod
    def _teacher_of(user: User) -> Teacher:
        if user.teacher_profile is None:
            raise NotFoundException("Teacher profile not found")
        return user.teacher_profile

    def _ensure_can_manage(self, actor: User, booking: Booking) -> None:
        """Admins manage every booking, teachers only their own sessions."""
        if actor.is_admin:
            return
        if actor.is_teacher and booking.teacher_id == self._teacher_of(actor).id:
            return
        raise ForbiddenException("You can only manage your own sessions")

    def _get_active_teacher(self, teacher_id: str) -> Teacher:
        teacher = self.teacher_repository.get_by_id(teacher_id)
        if teacher is None or not teacher.is_active:
            raise NotFoundException("Teacher not found")
        return teacher

    @staticmethod
    def _check_package_window(package: Package, start: datetime) -> None:
        if not package.covers(start):
            raise ValidationException(
                "Booking time is outside package validity period",
                details={"valid_from": package.valid_from.isoformat(), "valid_to": package.valid_to.isoformat()},
            )

    @staticmethod
    def _refund_if_deducted(booking: Booking) -> None:
        if booking.package_deducted and booking.package is not None:
            booking.package.restore_session()
            booking.package_deducted = False

    @staticmethod
    def _deduct_once(booking: Booking) -> None:
        if not booking.package_deducted and booking.package is not None:
            booking.package.deduct_session()
            booking.package_deducted = True

    # ------------------------------------------------------------------
    # Notification helpers (best effort)
    # ------------------------------------------------------------------

    def _notify_customer(self, booking: Booking, type: str, title: str, message: str) -> None:
        if booking.customer is not None:
            self.notification_service.notify(
                booking.customer.user_id, type, title, message, booking.id, "Booking"
            )

    def _notify_teacher(self, booking: Booking, type: str, title: str, message: str) -> None:
        if booking.teacher is not None:
            self.notification_service.notify(
                booking.teacher.user_id, type, title, message, booking.id, "Booking"
            )

    def _queue_line(self, booking: Booking, type: str, **extra: Any) -> None:
        if booking.customer is None:
            return
        try:
            payload = booking_payload(booking, **extra)
        except Exception as exc:
            self.logger.error(f"Could not build {type} payload for booking {booking.id}: {exc}")
            return
        self.notification_service.schedule_best_effort(
            booking.customer.user_id, type, payload, booking_id=booking.id
        )

    # ------------------------------------------------------------------
    # Customer requests
    # ------------------------------------------------------------------

    @BaseService.measure_operation("request_booking")
    def request_booking(
        self,
        user: User,
        package_id: str,
        start_time: datetime,
        teacher_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Create a pending booking request for the customer.

        Raises:
            InsufficientNoticeException: Start is inside the advance-notice window
            ForbiddenException: Package belongs to someone else
            ValidationException: Package unusable or no teacher given
            NotFoundException: Package or teacher missing
            BookingConflictException: Slot unavailable for the package type
        """
        customer = self._customer_of(user)
        now = now or utc_now()
        start = ensure_utc(start_time)
        self.conflict_checker.validate_advance_notice(start, now)

        package = self.package_repository.get_by_id(package_id)
        if package is None:
            raise NotFoundException("Package not found")
        if package.customer_id != customer.id:
            raise ForbiddenException("This package does not belong to you")
        if not package.is_active:
            raise PackageUnavailableException("Package is not active", package.id)
        if package.remaining_sessions <= 0:
            raise PackageUnavailableException("No sessions remaining in this package", package.id)
        if package.type not in {t.value for t in SessionType.bookable()}:
            raise ValidationException("Package type cannot be booked")
        self._check_package_window(package, start)

        duration = duration_minutes or settings.session_duration_minutes
        end = start + timedelta(minutes=duration)

        teacher_id = teacher_id or customer.preferred_teacher_id
        if not teacher_id:
            raise ValidationException("Teacher ID is required")
        teacher = self._get_active_teacher(teacher_id)

        booked = self.repository.count_undeducted_for_package(package.id)
        if package.remaining_sessions - booked <= 0:
            raise ValidationException(
                "All remaining sessions in this package are already booked",
                details={"remaining_sessions": package.remaining_sessions, "booked": booked},
            )

        self.conflict_checker.ensure_slot_bookable(teacher.id, start, end, package.type)

        with self.transaction():
            booking = self.repository.create(
                customer_id=customer.id,
                teacher_id=teacher.id,
                package_id=package.id,
                type=package.type,
                start_time=start,
                end_time=end,
                status=BookingStatus.PENDING.value,
                is_requested_by_customer=True,
                request_created_at=now,
                created_by=user.id,
                notes=notes,
            )

        booking = self.get_booking(booking.id)
        self.logger.info(f"Booking {booking.id} requested by customer {customer.id}")
        self._notify_teacher(
            booking,
            InAppNotificationType.BOOKING_REQUESTED.value,
            "New Booking Request",
            f"{customer.name} requested a {package.type} session on {format_studio_date(start)}",
        )
        return booking

    def get_my_bookings(
        self,
        user: User,
        status: Optional[str] = None,
        upcoming: bool = False,
        now: Optional[datetime] = None,
    ) -> List[Booking]:
        customer = self._customer_of(user)
        starting_after = (now or utc_now()) if upcoming else None
        return self.repository.list_for_customer(customer.id, status, starting_after)

    def get_pending_bookings(self) -> List[Booking]:
        return self.repository.list_pending_requests()

    def get_all_bookings(
        self,
        status: Optional[str] = None,
        teacher_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
    ) -> List[Booking]:
        return self.repository.list_filtered(
            status,
            teacher_id,
            customer_id,
            ensure_utc(start_from) if start_from else None,
            ensure_utc(start_to) if start_to else None,
        )

    # ------------------------------------------------------------------
    # Review of requests
    # ------------------------------------------------------------------

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(
        self,
        booking_id: str,
        actor: User,
        teacher_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_can_manage(actor, booking)
        if booking.status != BookingStatus.PENDING.value:
            raise ValidationException("Only pending bookings can be confirmed")

        new_teacher_id = booking.teacher_id
        if teacher_id and teacher_id != booking.teacher_id:
            if actor.is_teacher and not actor.is_admin:
                raise ForbiddenException("Only admins can reassign a booking")
            new_teacher_id = self._get_active_teacher(teacher_id).id

        start = ensure_utc(start_time) if start_time else booking.start_time
        if end_time:
            end = ensure_utc(end_time)
        elif start_time:
            end = start + (booking.end_time - booking.start_time)
        else:
            end = booking.end_time
        if end <= start:
            raise ValidationException("End time must be after start time")

        package = booking.package
        if booking.package_id:
            if package is None:
                raise NotFoundException("Package not found")
            if package.remaining_sessions <= 0:
                raise ValidationException("No sessions remaining in package")
            self._check_package_window(package, start)

        self.conflict_checker.ensure_slot_bookable(
            new_teacher_id, start, end, booking.type, exclude_booking_id=booking.id
        )

        with self.transaction():
            booking.teacher_id = new_teacher_id
            booking.start_time = start
            booking.end_time = end
            if notes is not None:
                booking.notes = notes
            booking.confirm(actor.id)

        booking = self.get_booking(booking.id)
        self._queue_line(booking, NotificationType.BOOKING_CONFIRMED.value)
        self._notify_customer(
            booking,
            InAppNotificationType.BOOKING_APPROVED.value,
            "Booking Request Approved",
            f"Your booking request for {format_studio_date(booking.start_time)} has been approved "
            f"by {booking.teacher.name if booking.teacher else 'the studio'}",
        )
        return booking

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, booking_id: str, actor: User, reason: Optional[str] = None) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_can_manage(actor, booking)
        if booking.status != BookingStatus.PENDING.value:
            raise ValidationException("Only pending bookings can be rejected")

        with self.transaction():
            booking.cancel(reason)

        self._queue_line(
            booking, NotificationType.BOOKING_REJECTED.value, reason=reason or "Not specified"
        )
        day = format_studio_date(booking.start_time)
        self._notify_customer(
            booking,
            InAppNotificationType.BOOKING_REJECTED.value,
            "Booking Request Rejected",
            f"Your booking request for {day} was rejected. Reason: {reason}"
            if reason
            else f"Your booking request for {day} was rejected. Please contact the studio for more details.",
        )
        return booking

    @BaseService.measure_operation("mark_attendance")
    def mark_attendance(
        self, booking_id: str, actor: User, status: str, notes: Optional[str] = None
    ) -> Booking:
        if status not in ATTENDANCE_STATUSES:
            raise ValidationException("Attendance status must be completed, noShow or cancelled")
        booking = self.get_booking(booking_id)
        self._ensure_can_manage(actor, booking)
        if booking.status != BookingStatus.CONFIRMED.value:
            raise ValidationException("Only confirmed bookings can have attendance marked")

        with self.transaction():
            booking.status = status
            booking.attendance_marked_at = utc_now()
            if notes:
                booking.notes = notes
            if status in DEDUCTING_STATUSES:
                self._deduct_once(booking)
            else:
                booking.cancelled_at = utc_now()
                self._refund_if_deducted(booking)

        self.logger.info(f"Attendance for booking {booking.id} marked {status}")
        return booking

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        user: User,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Customer cancellation.

        Pending requests cancel immediately. Confirmed sessions cancel
        outright with enough notice, become a cancellation request inside
        the shorter window, and are refused after that.
        """
        booking = self.get_booking(booking_id)
        if not user.is_admin and booking.customer_id != self._customer_of(user).id:
            raise ForbiddenException("You can only cancel your own bookings")

        now = now or utc_now()
        hours_until = (booking.start_time - now).total_seconds() / 3600
        customer_name = booking.customer.name if booking.customer else "A customer"
        day = format_studio_date(booking.start_time)

        if not booking.is_cancellable:
            raise ValidationException("This booking cannot be cancelled")

        if booking.status == BookingStatus.PENDING.value:
            with self.transaction():
                booking.cancel(reason)
                self._refund_if_deducted(booking)
            return {"booking": booking, "message": "Booking request cancelled", "requires_approval": False}

        suffix = f". Reason: {reason}" if reason else ""
        if hours_until >= settings.cancellation_hours_before:
            with self.transaction():
                booking.cancel(reason)
                self._refund_if_deducted(booking)
            self._notify_teacher(
                booking,
                InAppNotificationType.BOOKING_CANCELLED.value,
                "Booking Cancelled",
                f"{customer_name} cancelled their booking on {day}{suffix}",
            )
            return {"booking": booking, "message": "Booking cancelled", "requires_approval": False}

        if hours_until >= settings.cancellation_request_hours_before:
            with self.transaction():
                booking.status = BookingStatus.CANCELLATION_REQUESTED.value
                booking.cancellation_reason = reason
            self._notify_teacher(
                booking,
                InAppNotificationType.CANCELLATION_REQUESTED.value,
                "Cancellation Request",
                f"{customer_name} requested to cancel booking on {day}{suffix}",
            )
            return {
                "booking": booking,
                "message": "Cancellation request sent to your teacher for approval",
                "requires_approval": True,
            }

        raise CancellationWindowClosedException(settings.cancellation_request_hours_before, hours_until)

    @BaseService.measure_operation("approve_cancellation")
    def approve_cancellation(self, booking_id: str, actor: User) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_can_manage(actor, booking)
        if booking.status != BookingStatus.CANCELLATION_REQUESTED.value:
            raise ValidationException("This booking has no pending cancellation request")

        with self.transaction():
            booking.cancel(booking.cancellation_reason)
            self._refund_if_deducted(booking)

        self._notify_customer(
            booking,
            InAppNotificationType.BOOKING_CANCELLED.value,
            "Cancellation Request Approved",
            f"Your cancellation request for the booking on {format_studio_date(booking.start_time)} "
            "has been approved",
        )
        return booking

    @BaseService.measure_operation("reject_cancellation")
    def reject_cancellation(
        self, booking_id: str, actor: User, reason: Optional[str] = None
    ) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_can_manage(actor, booking)
        if booking.status != BookingStatus.CANCELLATION_REQUESTED.value:
            raise ValidationException("This booking has no pending cancellation request")

        with self.transaction():
            booking.status = BookingStatus.CONFIRMED.value
            booking.cancellation_reason = None

        day = format_studio_date(booking.start_time)
        self._notify_customer(
            booking,
            InAppNotificationType.CANCELLATION_REQUESTED.value,
            "Cancellation Request Rejected",
            f"Your cancellation request for the booking on {day} was rejected. Reason: {reason}"
            if reason
            else f"Your cancellation request for the booking on {day} was rejected. "
            "Please contact the teacher for more details.",
        )
        return booking

    # ------------------------------------------------------------------
    # Manual sessions
    # ------------------------------------------------------------------

    @BaseService.measure_operation("add_manual_session")
    def add_manual_session(
        self,
        actor: User,
        customer_id: str,
        package_id: str,
        start_time: datetime,
        notes: Optional[str] = None,
        teacher_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Record a session arranged outside the request flow.

        Future sessions are created confirmed, past ones completed; either
        way the package session is used immediately.
        """
        if actor.is_teacher:
            teacher = self._teacher_of(actor)
        else:
            if not teacher_id:
                raise ValidationException("teacher_id is required")
            teacher = self._get_active_teacher(teacher_id)

        package = self.package_repository.get_by_id(package_id)
        if package is None or package.customer_id != customer_id:
            raise NotFoundException("Package not found or does not belong to customer")
        if package.remaining_sessions <= 0:
            raise PackageUnavailableException("No remaining sessions in this package", package.id)

        start = ensure_utc(start_time)
        local_hour = to_studio_time(start).hour
        if local_hour < MANUAL_SESSION_FIRST_HOUR or local_hour > MANUAL_SESSION_LAST_HOUR:
            raise ValidationException("Session time must be between 7:00 AM and 10:00 PM")
        if start < package.valid_from:
            raise ValidationException("Session date is before package start date")
        if start > package.valid_to:
            raise ValidationException("Session date is after package expiry date")

        end = start + timedelta(minutes=MANUAL_SESSION_DURATION_MINUTES)
        self.conflict_checker.ensure_slot_bookable(teacher.id, start, end, package.type)

        now = now or utc_now()
        is_future = start > now
        with self.transaction():
            booking = self.repository.create(
                customer_id=customer_id,
                teacher_id=teacher.id,
                package_id=package.id,
                type=package.type,
                start_time=start,
                end_time=end,
                status=(BookingStatus.CONFIRMED if is_future else BookingStatus.COMPLETED).value,
                confirmed_at=now,
                confirmed_by=actor.id,
                created_by=actor.id,
                notes=notes,
                attendance_marked_at=None if is_future else now,
            )
            package.deduct_session()
            booking.package_deducted = True

        booking = self.get_booking(booking.id)
        when = format_studio_date(start)
        self._notify_customer(
            booking,
            InAppNotificationType.SESSION_ADDED.value,
            "Session Booked" if is_future else "Session Recorded",
            f"Your session with {teacher.name} has been booked for {when}"
            if is_future
            else f"Your completed session with {teacher.name} on {when} has been recorded",
        )
        return booking

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    @BaseService.measure_operation("auto_confirm_stale_requests")
    def auto_confirm_stale_requests(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Confirm customer requests nobody answered within the response window."""
        now = now or utc_now()
        cutoff = now - timedelta(hours=settings.auto_confirm_after_hours)
        confirmed = skipped = 0

        for booking in self.repository.list_stale_pending_requests(cutoff):
            if booking.start_time <= now:
                skipped += 1
                continue
            try:
                self.conflict_checker.ensure_slot_bookable(
                    booking.teacher_id, booking.start_time, booking.end_time, booking.type,
                    exclude_booking_id=booking.id,
                )
            except BookingConflictException as exc:
                self.logger.warning(
                    f"Skipping auto-confirm of booking {booking.id}: {exc.details.get('reason') or exc.message}"
                )
                skipped += 1
                continue

            with self.transaction():
                booking.confirm(None, auto=True)
                booking.append_note(AUTO_CONFIRM_NOTE)
            confirmed += 1

            self._queue_line(booking, NotificationType.BOOKING_CONFIRMED.value)
            self._notify_customer(
                booking,
                InAppNotificationType.BOOKING_APPROVED.value,
                "Booking Confirmed",
                f"Your booking for {format_studio_date(booking.start_time)} has been confirmed",
            )
            self._notify_teacher(
                booking,
                InAppNotificationType.BOOKING_APPROVED.value,
                "Booking Auto-confirmed",
                f"The booking request for {format_studio_date(booking.start_time)} was "
                "confirmed automatically",
            )

        self.logger.info(f"Auto-confirmed {confirmed} stale requests ({skipped} skipped)")
        return {"confirmed": confirmed, "skipped": skipped}
