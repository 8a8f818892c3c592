# backend/app/routes/v1/packages.py
"""
Package routes - API v1

Versioned package endpoints under /api/v1/packages.

Endpoints:
    POST /                              - Sell a package (admin)
    GET /me                             - Customer's packages with usage
    GET /customer/{customer_id}         - A customer's packages (teacher/admin)
    POST /requests                      - Customer package request
    GET /requests/me                    - Customer's own requests
    GET /requests/pending               - Pending requests (admin)
    GET /requests                       - All requests, optional status (admin)
    POST /requests/{request_id}/approve - Approve and sell (admin)
    POST /requests/{request_id}/reject  - Reject (admin)
    GET /{package_id}                   - Package detail
    PATCH /{package_id}                 - Update (admin)
    DELETE /{package_id}                - Delete (admin)
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import (
    get_current_active_user,
    require_admin,
    require_customer,
    require_teacher,
)
from ...api.dependencies.services import get_package_request_service, get_package_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.package import (
    PackageCreate,
    PackageListResponse,
    PackageRequestApprove,
    PackageRequestCreate,
    PackageRequestReject,
    PackageRequestResponse,
    PackageResponse,
    PackageUpdate,
)
from ...services.package_request_service import PackageRequestService
from ...services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packages-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _package_response(service: PackageService, package) -> PackageResponse:
    return PackageResponse.model_validate(package.to_dict(service.usage(package)))


@router.post("", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
async def create_package(
    payload: PackageCreate,
    current_user: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    try:
        package = await asyncio.to_thread(
            package_service.create_package,
            current_user,
            payload.customer_id,
            payload.name,
            payload.type,
            payload.total_sessions,
            valid_from=payload.valid_from,
            valid_to=payload.valid_to,
            price=payload.price,
            note=payload.note,
            payment=payload.payment.model_dump() if payload.payment else None,
        )
        return await asyncio.to_thread(_package_response, package_service, package)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/me", response_model=PackageListResponse)
async def get_my_packages(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(require_customer),
    package_service: PackageService = Depends(get_package_service),
) -> PackageListResponse:
    try:
        packages = await asyncio.to_thread(
            package_service.get_my_packages, current_user, status_filter
        )
        return PackageListResponse(packages=[PackageResponse.model_validate(p) for p in packages])
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/customer/{customer_id}", response_model=PackageListResponse)
async def get_customer_packages(
    customer_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    _: User = Depends(require_teacher),
    package_service: PackageService = Depends(get_package_service),
) -> PackageListResponse:
    try:
        packages = await asyncio.to_thread(
            package_service.get_customer_packages, customer_id, status_filter
        )
        return PackageListResponse(packages=[PackageResponse.model_validate(p) for p in packages])
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Package requests
# ============================================================================


@router.post(
    "/requests", response_model=PackageRequestResponse, status_code=status.HTTP_201_CREATED
)
async def create_package_request(
    payload: PackageRequestCreate,
    current_user: User = Depends(require_customer),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> PackageRequestResponse:
    try:
        request = await asyncio.to_thread(
            request_service.create_request,
            current_user,
            payload.package_type,
            payload.sessions,
            payload.notes,
        )
        return PackageRequestResponse.model_validate(request)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/requests/me", response_model=List[PackageRequestResponse])
async def list_my_requests(
    current_user: User = Depends(require_customer),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> List[PackageRequestResponse]:
    try:
        requests = await asyncio.to_thread(request_service.list_my_requests, current_user)
        return [PackageRequestResponse.model_validate(r) for r in requests]
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/requests/pending", response_model=List[PackageRequestResponse])
async def list_pending_requests(
    _: User = Depends(require_admin),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> List[PackageRequestResponse]:
    requests = await asyncio.to_thread(request_service.list_pending_requests)
    return [PackageRequestResponse.model_validate(r) for r in requests]


@router.get("/requests", response_model=List[PackageRequestResponse])
async def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    _: User = Depends(require_admin),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> List[PackageRequestResponse]:
    requests = await asyncio.to_thread(request_service.list_requests, status_filter)
    return [PackageRequestResponse.model_validate(r) for r in requests]


@router.post("/requests/{request_id}/approve", response_model=PackageRequestResponse)
async def approve_request(
    request_id: str,
    payload: PackageRequestApprove,
    current_user: User = Depends(require_admin),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> PackageRequestResponse:
    try:
        request = await asyncio.to_thread(
            request_service.approve_request,
            request_id,
            current_user,
            payload.package_type,
            payload.sessions,
            payload.price,
            payload.valid_from,
        )
        return PackageRequestResponse.model_validate(request)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/requests/{request_id}/reject", response_model=PackageRequestResponse)
async def reject_request(
    request_id: str,
    payload: Optional[PackageRequestReject] = None,
    current_user: User = Depends(require_admin),
    request_service: PackageRequestService = Depends(get_package_request_service),
) -> PackageRequestResponse:
    try:
        request = await asyncio.to_thread(
            request_service.reject_request,
            request_id,
            current_user,
            payload.reason if payload else None,
        )
        return PackageRequestResponse.model_validate(request)
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Single package
# ============================================================================


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: str,
    current_user: User = Depends(get_current_active_user),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    try:
        package = await asyncio.to_thread(package_service.get_package, package_id, current_user)
        return await asyncio.to_thread(_package_response, package_service, package)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: str,
    payload: PackageUpdate,
    current_user: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    """Edit a package; changing remaining sessions requires a reason."""
    fields = payload.model_dump(exclude_unset=True, exclude={"reason"})
    try:
        package = await asyncio.to_thread(
            package_service.update_package, package_id, current_user, fields, payload.reason
        )
        return await asyncio.to_thread(_package_response, package_service, package)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_package(
    package_id: str,
    _: User = Depends(require_admin),
    package_service: PackageService = Depends(get_package_service),
) -> Response:
    try:
        await asyncio.to_thread(package_service.delete_package, package_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as exc:
        handle_domain_exception(exc)
