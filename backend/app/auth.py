from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError
from passlib.context import CryptContext

from .core.config import settings
from .models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password
        hashed_password: The hashed password to compare against

    Returns:
        bool: True if password matches, False otherwise
    """
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except (ValueError, TypeError) as e:
        logger.error(f"Error verifying password: {str(e)}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return str(pwd_context.hash(password))


def token_claims(user: User) -> Dict[str, Any]:
    return {"sub": user.id, "role": user.role, "email": user.email}


def _encode(data: Dict[str, Any], token_type: str, secret: Any, expires: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"type": token_type, "exp": datetime.now(timezone.utc) + expires})
    return jwt.encode(to_encode, _secret_value(secret), algorithm=settings.algorithm)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode (``sub`` is the user id)
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    expires = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, ACCESS_TOKEN_TYPE, settings.secret_key, expires)


def create_refresh_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    expires = expires_delta or timedelta(minutes=settings.refresh_token_expire_minutes)
    return _encode(data, REFRESH_TOKEN_TYPE, settings.refresh_secret_key, expires)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode an access token; raises ``PyJWTError`` when invalid or of the wrong type."""
    payload = cast(
        Dict[str, Any],
        jwt.decode(token, _secret_value(settings.secret_key), algorithms=[settings.algorithm]),
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def decode_refresh_token(token: str) -> Dict[str, Any]:
    payload = cast(
        Dict[str, Any],
        jwt.decode(
            token, _secret_value(settings.refresh_secret_key), algorithms=[settings.algorithm]
        ),
    )
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload


def get_user_id_from_token(token: str) -> Optional[str]:
    """Return the ``sub`` claim of a valid access token, or None."""
    try:
        return decode_access_token(token).get("sub")
    except PyJWTError as exc:
        logger.debug(f"Rejected access token: {exc}")
        return None
