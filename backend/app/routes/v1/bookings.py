# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST /                                   - Customer booking request
    GET /me                                  - Customer's own bookings
    GET /pending                             - Pending requests (admin)
    GET /                                    - All bookings with filters (admin)
    POST /manual                             - Record a manual session (teacher/admin)
    POST /{booking_id}/confirm               - Confirm a pending request
    POST /{booking_id}/reject                - Reject a pending request
    PATCH /{booking_id}/attendance           - Mark completed / noShow / cancelled
    POST /{booking_id}/cancel                - Customer cancellation
    POST /{booking_id}/cancellation/approve  - Approve a cancellation request
    POST /{booking_id}/cancellation/reject   - Reject a cancellation request
"""

import asyncio
from datetime import datetime
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies.auth import require_admin, require_customer, require_teacher
from ...api.dependencies.services import get_booking_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.booking import (
    AttendanceUpdate,
    BookingCancel,
    BookingConfirm,
    BookingListResponse,
    BookingReject,
    BookingRequestCreate,
    BookingResponse,
    CancelBookingResponse,
    ManualSessionCreate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _booking_list(bookings: list) -> BookingListResponse:
    items = [BookingResponse.model_validate(b.to_dict()) for b in bookings]
    return BookingListResponse(bookings=items, total=len(items))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def request_booking(
    payload: BookingRequestCreate,
    current_user: User = Depends(require_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Request a session; it stays pending until a teacher or admin confirms it."""
    try:
        booking = await asyncio.to_thread(
            booking_service.request_booking,
            current_user,
            payload.package_id,
            payload.start_time,
            teacher_id=payload.teacher_id,
            duration_minutes=payload.duration_minutes,
            notes=payload.notes,
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/me", response_model=BookingListResponse)
async def get_my_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = Query(False),
    current_user: User = Depends(require_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_my_bookings, current_user, status_filter, upcoming
        )
        return _booking_list(bookings)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/pending", response_model=BookingListResponse)
async def get_pending_bookings(
    _: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(booking_service.get_pending_bookings)
    return _booking_list(bookings)


@router.get("", response_model=BookingListResponse)
async def get_all_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    teacher_id: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None),
    start_from: Optional[datetime] = Query(None, alias="from"),
    start_to: Optional[datetime] = Query(None, alias="to"),
    _: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(
        booking_service.get_all_bookings,
        status_filter,
        teacher_id,
        customer_id,
        start_from,
        start_to,
    )
    return _booking_list(bookings)


@router.post("/manual", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def add_manual_session(
    payload: ManualSessionCreate,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Record a session arranged directly with the customer."""
    try:
        booking = await asyncio.to_thread(
            booking_service.add_manual_session,
            current_user,
            payload.customer_id,
            payload.package_id,
            payload.start_time,
            notes=payload.notes,
            teacher_id=payload.teacher_id,
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# SECTION 2: Booking actions
# ============================================================================


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str,
    payload: Optional[BookingConfirm] = None,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    payload = payload or BookingConfirm()
    try:
        booking = await asyncio.to_thread(
            booking_service.confirm_booking,
            booking_id,
            current_user,
            teacher_id=payload.teacher_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            notes=payload.notes,
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: str,
    payload: Optional[BookingReject] = None,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reason = payload.reason if payload else None
    try:
        booking = await asyncio.to_thread(
            booking_service.reject_booking, booking_id, current_user, reason
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/{booking_id}/attendance", response_model=BookingResponse)
async def mark_attendance(
    booking_id: str,
    payload: AttendanceUpdate,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.mark_attendance,
            booking_id,
            current_user,
            payload.status,
            payload.notes,
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{booking_id}/cancel", response_model=CancelBookingResponse)
async def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = None,
    current_user: User = Depends(require_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    """
    Cancel a booking.

    Inside the free-cancellation window this becomes a cancellation request
    that the teacher or an admin must approve.
    """
    reason = payload.reason if payload else None
    try:
        result = await asyncio.to_thread(
            booking_service.cancel_booking, booking_id, current_user, reason
        )
        return CancelBookingResponse(
            booking=BookingResponse.model_validate(result["booking"].to_dict()),
            message=result["message"],
            requires_approval=result["requires_approval"],
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{booking_id}/cancellation/approve", response_model=BookingResponse)
async def approve_cancellation(
    booking_id: str,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.approve_cancellation, booking_id, current_user
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{booking_id}/cancellation/reject", response_model=BookingResponse)
async def reject_cancellation(
    booking_id: str,
    payload: Optional[BookingReject] = None,
    current_user: User = Depends(require_teacher),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reason = payload.reason if payload else None
    try:
        booking = await asyncio.to_thread(
            booking_service.reject_cancellation, booking_id, current_user, reason
        )
        return BookingResponse.model_validate(booking.to_dict())
    except DomainException as exc:
        handle_domain_exception(exc)
