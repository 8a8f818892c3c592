# backend/app/routes/v1/line.py
"""
LINE routes - API v1

Endpoints:
    POST /webhook               - LINE Messaging API webhook (signature verified)
    POST /link                  - Link a LINE account to a user (admin)
    DELETE /unlink/{user_id}    - Remove a user's LINE link (admin)
    GET /status                 - Current user's LINE connection
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from ...api.dependencies.auth import get_current_active_user, require_admin
from ...api.dependencies.services import get_line_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.line import LineLinkRequest, LineStatusResponse, LineWebhookResponse
from ...services.line_service import LineService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["line-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/webhook", response_model=LineWebhookResponse)
async def line_webhook(
    request: Request,
    x_line_signature: Optional[str] = Header(None, alias="x-line-signature"),
    line_service: LineService = Depends(get_line_service),
) -> LineWebhookResponse:
    """
    Receive LINE events.

    The raw body is needed for HMAC verification, so it is read before any
    parsing. A missing signature is a 400, a bad one a 403.
    """
    body = await request.body()
    try:
        result = await asyncio.to_thread(line_service.handle_webhook, body, x_line_signature)
        return LineWebhookResponse(**result)
    except DomainException as exc:
        logger.warning(f"Rejected LINE webhook: {exc.message}")
        handle_domain_exception(exc)


@router.post("/link", response_model=LineStatusResponse)
async def link_line_account(
    payload: LineLinkRequest,
    _: User = Depends(require_admin),
    line_service: LineService = Depends(get_line_service),
) -> LineStatusResponse:
    try:
        user = await asyncio.to_thread(
            line_service.link_user, payload.user_id, payload.line_user_id
        )
        return LineStatusResponse(**LineService.connection_status(user))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/unlink/{user_id}", response_model=LineStatusResponse)
async def unlink_line_account(
    user_id: str,
    _: User = Depends(require_admin),
    line_service: LineService = Depends(get_line_service),
) -> LineStatusResponse:
    try:
        user = await asyncio.to_thread(line_service.unlink_user, user_id)
        return LineStatusResponse(**LineService.connection_status(user))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/status", response_model=LineStatusResponse)
async def line_status(current_user: User = Depends(get_current_active_user)) -> LineStatusResponse:
    return LineStatusResponse(**LineService.connection_status(current_user))
