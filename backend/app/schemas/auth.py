"""Authentication request and response schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import EmailStr, Field

from .base import StandardizedModel, StrictRequestModel


class RegisterRequest(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    phone: Optional[str] = Field(None, max_length=32)


class LoginRequest(StrictRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(StrictRequestModel):
    refresh_token: str = Field(..., min_length=1)


class UserResponse(StandardizedModel):
    id: str
    role: str
    name: str
    email: str
    phone: Optional[str] = None
    status: str
    line_connected: bool = False
    created_at: Optional[datetime] = None
    customer_id: Optional[str] = None
    teacher_id: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class AuthResponse(StandardizedModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AccessTokenResponse(StandardizedModel):
    access_token: str
    token_type: str = "bearer"
