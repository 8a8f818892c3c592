# backend/app/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The bearer token carries the user id in ``sub``. The user row is loaded
with ``asyncio.to_thread`` so the sync SQLAlchemy query does not block the
event loop. Role guards follow the studio hierarchy: admins pass every
guard, teachers pass the teacher guard, customers the customer guard.
"""

import asyncio
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_user_id_from_token, oauth2_scheme, oauth2_scheme_optional
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the database.

    Raises:
        HTTPException: 401 if the token is invalid or the user no longer exists
    """
    user_id = get_user_id_from_token(token)
    if not user_id:
        raise _credentials_exception()

    user_repo = RepositoryFactory.create_user_repository(db)
    user = await asyncio.to_thread(user_repo.get_by_id, user_id)
    if user is None:
        logger.warning(f"Token subject {user_id} no longer exists")
        raise _credentials_exception()
    return user


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like ``get_current_user`` but returns None for anonymous requests."""
    if not token:
        return None
    user_id = get_user_id_from_token(token)
    if not user_id:
        return None
    user_repo = RepositoryFactory.create_user_repository(db)
    return await asyncio.to_thread(user_repo.get_by_id, user_id)


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Get the current authenticated and active user.

    Raises:
        HTTPException: If user is not active
    """
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return current_user


async def require_admin(user: User = Depends(get_current_active_user)) -> User:
    """Require the admin role."""
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


async def require_teacher(user: User = Depends(get_current_active_user)) -> User:
    """Require a teacher (admins included)."""
    if not (user.is_teacher or user.is_admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher access required")
    return user


async def require_customer(user: User = Depends(get_current_active_user)) -> User:
    """Require a customer (admins included)."""
    if not (user.is_customer or user.is_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Customer access required"
        )
    return user
