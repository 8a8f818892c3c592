# backend/app/routes/v1/notifications.py
"""
Notification routes - API v1

In-app notifications for the current user plus the admin-editable
LINE message templates.

Endpoints:
    GET /                          - List notifications (optionally unread only)
    POST /{notification_id}/read   - Mark one as read
    POST /read-all                 - Mark all as read
    DELETE /{notification_id}      - Delete one
    GET /templates                 - List message templates (admin)
    PUT /templates/{key}           - Update a template body (admin)
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import get_current_active_user, require_admin
from ...api.dependencies.services import get_notification_service, get_template_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.base import CountResponse
from ...schemas.notifications import (
    InAppNotificationResponse,
    MessageTemplateResponse,
    MessageTemplateUpdate,
    NotificationListResponse,
)
from ...services.notification_service import NotificationService
from ...services.template_service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# Static routes first so /templates and /read-all are not captured by /{notification_id}


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    result = await asyncio.to_thread(
        notification_service.list_for_user, current_user.id, unread_only, limit
    )
    return NotificationListResponse(
        notifications=[
            InAppNotificationResponse.model_validate(n) for n in result["notifications"]
        ],
        unread_count=result["unread_count"],
    )


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> CountResponse:
    try:
        updated = await asyncio.to_thread(notification_service.mark_all_read, current_user.id)
        return CountResponse(count=updated)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/templates", response_model=List[MessageTemplateResponse])
async def list_templates(
    _: User = Depends(require_admin),
    template_service: TemplateService = Depends(get_template_service),
) -> List[MessageTemplateResponse]:
    templates = await asyncio.to_thread(template_service.list_templates)
    return [MessageTemplateResponse.model_validate(t) for t in templates]


@router.put("/templates/{key}", response_model=MessageTemplateResponse)
async def update_template(
    key: str,
    payload: MessageTemplateUpdate,
    _: User = Depends(require_admin),
    template_service: TemplateService = Depends(get_template_service),
) -> MessageTemplateResponse:
    try:
        template = await asyncio.to_thread(template_service.update_template, key, payload.body)
        return MessageTemplateResponse.model_validate(template)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{notification_id}/read", response_model=InAppNotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> InAppNotificationResponse:
    try:
        notification = await asyncio.to_thread(
            notification_service.mark_read, current_user.id, notification_id
        )
        return InAppNotificationResponse.model_validate(notification)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> Response:
    try:
        await asyncio.to_thread(notification_service.delete, current_user.id, notification_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as exc:
        handle_domain_exception(exc)
