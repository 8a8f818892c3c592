"""LINE account linking schemas."""

from typing import Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel


class LineLinkRequest(StrictRequestModel):
    user_id: str = Field(..., min_length=1)
    line_user_id: str = Field(..., min_length=1, max_length=64)


class LineStatusResponse(StandardizedModel):
    connected: bool
    line_user_id: Optional[str] = None


class LineWebhookResponse(StandardizedModel):
    success: bool
    handled: int = 0
