"""In-app notification and message template schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel


class InAppNotificationResponse(StandardizedModel):
    id: str
    type: str
    title: str
    message: str
    related_id: Optional[str] = None
    related_model: Optional[str] = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(StandardizedModel):
    notifications: List[InAppNotificationResponse]
    unread_count: int


class MessageTemplateResponse(StandardizedModel):
    id: str
    key: str
    channel: str
    body: str
    variables: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class MessageTemplateUpdate(StrictRequestModel):
    body: str = Field(..., min_length=1, max_length=5000)
