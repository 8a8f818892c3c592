# backend/app/routes/v1/customers.py
"""
Customer routes - API v1

Endpoints:
    GET /me                - Customer overview (profile, packages, next bookings)
    PATCH /me/profile      - Update own profile
    GET /                  - Customer directory (teacher/admin)
    GET /{customer_id}     - Customer overview (teacher/admin)
    PATCH /{customer_id}   - Update a customer (admin)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies.auth import require_admin, require_customer, require_teacher
from ...api.dependencies.services import get_customer_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.customer import (
    CustomerAdminUpdate,
    CustomerListResponse,
    CustomerOverview,
    CustomerProfileUpdate,
    CustomerResponse,
)
from ...services.customer_service import CustomerService, customer_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["customers-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/me", response_model=CustomerOverview)
async def get_my_overview(
    current_user: User = Depends(require_customer),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerOverview:
    try:
        overview = await asyncio.to_thread(customer_service.get_my_overview, current_user)
        return CustomerOverview.model_validate(overview)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/me/profile", response_model=CustomerResponse)
async def update_my_profile(
    payload: CustomerProfileUpdate,
    current_user: User = Depends(require_customer),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    try:
        customer = await asyncio.to_thread(
            customer_service.update_profile,
            current_user,
            payload.model_dump(exclude_unset=True),
        )
        return CustomerResponse.model_validate(customer_dict(customer))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = Query(None, max_length=100, description="Name, email or phone"),
    _: User = Depends(require_teacher),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerListResponse:
    customers = await asyncio.to_thread(customer_service.list_customers, search)
    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(c) for c in customers],
        total=len(customers),
    )


@router.get("/{customer_id}", response_model=CustomerOverview)
async def get_customer(
    customer_id: str,
    _: User = Depends(require_teacher),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerOverview:
    try:
        overview = await asyncio.to_thread(customer_service.get_customer, customer_id)
        return CustomerOverview.model_validate(overview)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    payload: CustomerAdminUpdate,
    _: User = Depends(require_admin),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    try:
        customer = await asyncio.to_thread(
            customer_service.update_customer,
            customer_id,
            payload.model_dump(exclude_unset=True),
        )
        return CustomerResponse.model_validate(customer_dict(customer))
    except DomainException as exc:
        handle_domain_exception(exc)
