# backend/app/routes/v1/auth.py
"""
Authentication routes - API v1

Versioned authentication endpoints under /api/v1/auth.

Endpoints:
    POST /register   → Customer self-registration
    POST /login      → Email/password login
    POST /refresh    → Exchange a refresh token for a new access token
    GET /me          → Current user with profile
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_auth_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.auth import (
    AccessTokenResponse,
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from ...services.auth_service import AuthService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["auth-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a customer account and return tokens."""
    try:
        result = await asyncio.to_thread(
            auth_service.register_customer,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
        )
        return AuthResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        result = await asyncio.to_thread(auth_service.login, payload.email, payload.password)
        return AuthResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    payload: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AccessTokenResponse:
    try:
        result = await asyncio.to_thread(auth_service.refresh, payload.refresh_token)
        return AccessTokenResponse.model_validate(result)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/me", response_model=UserResponse)
async def read_users_me(
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Current user with their customer or teacher profile."""
    return UserResponse.model_validate(auth_service.describe_user(current_user))
