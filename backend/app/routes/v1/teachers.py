# backend/app/routes/v1/teachers.py
"""
Teacher routes - API v1

Endpoints:
    GET /                 - Public list of active teachers
    GET /sessions/today   - Teacher's sessions for today (studio time)
    GET /sessions         - Teacher's sessions with optional filters
"""

import asyncio
from datetime import date, datetime
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies.auth import require_teacher
from ...api.dependencies.services import get_teacher_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.booking import BookingListResponse, BookingResponse
from ...schemas.teacher import TeacherPublic
from ...services.teacher_service import TeacherService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["teachers-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _booking_list(bookings: list) -> BookingListResponse:
    items = [BookingResponse.model_validate(b.to_dict()) for b in bookings]
    return BookingListResponse(bookings=items, total=len(items))


@router.get("", response_model=List[TeacherPublic])
async def list_teachers(
    teacher_service: TeacherService = Depends(get_teacher_service),
) -> List[TeacherPublic]:
    """Active teachers; no authentication required."""
    teachers = await asyncio.to_thread(teacher_service.list_teachers)
    return [TeacherPublic.model_validate(t) for t in teachers]


@router.get("/sessions/today", response_model=BookingListResponse)
async def sessions_today(
    day: Optional[date] = Query(None, description="Studio-local day, defaults to today"),
    teacher_id: Optional[str] = Query(None, description="Admin only"),
    current_user: User = Depends(require_teacher),
    teacher_service: TeacherService = Depends(get_teacher_service),
) -> BookingListResponse:
    try:
        bookings = await asyncio.to_thread(
            teacher_service.sessions_today, current_user, teacher_id, day
        )
        return _booking_list(bookings)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/sessions", response_model=BookingListResponse)
async def sessions(
    start_from: Optional[datetime] = Query(None, alias="from"),
    start_to: Optional[datetime] = Query(None, alias="to"),
    customer_id: Optional[str] = Query(None),
    teacher_id: Optional[str] = Query(None, description="Admin only"),
    current_user: User = Depends(require_teacher),
    teacher_service: TeacherService = Depends(get_teacher_service),
) -> BookingListResponse:
    try:
        bookings = await asyncio.to_thread(
            teacher_service.sessions, current_user, start_from, start_to, customer_id, teacher_id
        )
        return _booking_list(bookings)
    except DomainException as exc:
        handle_domain_exception(exc)
