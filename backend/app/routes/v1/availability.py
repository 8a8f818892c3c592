# backend/app/routes/v1/availability.py
"""
Availability and time block routes - API v1

Mounted under /api/v1/bookings.

Endpoints:
    GET /availability            → Slot calendar for a date range (public)
    GET /blocks                  → List blocks (teacher or admin)
    POST /blocks                 → Create a block (teacher for self, admin for anyone)
    DELETE /blocks/{block_id}    → Delete a block
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import require_teacher
from ...api.dependencies.services import get_availability_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.availability import (
    AvailabilityResponse,
    BlockCreate,
    BlockCreateResponse,
    BlockResponse,
)
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    from_date: date = Query(..., description="First studio day (YYYY-MM-DD)"),
    to_date: date = Query(..., description="Last studio day (YYYY-MM-DD)"),
    teacher_id: Optional[str] = Query(None),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Hourly slots with available / partial / blocked status."""
    try:
        result = await asyncio.to_thread(
            availability_service.get_availability, from_date, to_date, teacher_id
        )
        return AvailabilityResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/blocks", response_model=List[BlockResponse])
async def list_blocks(
    teacher_id: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    expand: bool = Query(False, description="Expand recurring blocks into occurrences"),
    current_user: User = Depends(require_teacher),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[BlockResponse]:
    if current_user.is_teacher and current_user.teacher_profile is not None:
        teacher_id = current_user.teacher_profile.id
    try:
        blocks = await asyncio.to_thread(
            availability_service.list_blocks, teacher_id, from_date, to_date, expand
        )
        return [BlockResponse.model_validate(b) for b in blocks]
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/blocks", response_model=BlockCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    payload: BlockCreate,
    current_user: User = Depends(require_teacher),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BlockCreateResponse:
    """Block time; overlapping customer sessions are returned as conflicts."""
    try:
        result = await asyncio.to_thread(
            availability_service.create_block,
            current_user,
            payload.start_time,
            payload.end_time,
            teacher_id=payload.teacher_id,
            all_teachers=payload.all_teachers,
            reason=payload.reason,
            recurring=payload.recurring.model_dump() if payload.recurring else None,
        )
        return BlockCreateResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: str,
    current_user: User = Depends(require_teacher),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    try:
        await asyncio.to_thread(availability_service.delete_block, current_user, block_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as exc:
        handle_domain_exception(exc)
