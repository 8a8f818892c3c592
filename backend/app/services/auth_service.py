# backend/app/services/auth_service.py
"""
Authentication Service for the studio platform.

Handles customer self-registration, login, token refresh and admin-created
teacher accounts. Routes stay thin; all account rules live here.
"""

import logging
from typing import Any, Dict, List, Optional

from jwt import PyJWTError
from sqlalchemy.orm import Session

from ..auth import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    get_password_hash,
    token_claims,
    verify_password,
)
from ..core.enums import TeacherType, UserRole, UserStatus
from ..core.exceptions import ConflictException, UnauthorizedException
from ..models.customer import Customer
from ..models.teacher import Teacher
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": user.id,
        "role": user.role,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "status": user.status,
        "line_connected": user.has_line,
        "created_at": user.created_at,
        "customer_id": None,
        "teacher_id": None,
    }
    if user.customer_profile is not None:
        data["customer_id"] = user.customer_profile.id
    if user.teacher_profile is not None:
        data["teacher_id"] = user.teacher_profile.id
    return data


class AuthService(BaseService):
    """Service for handling authentication operations."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    def _ensure_unique_contact(self, email: str, phone: Optional[str]) -> None:
        if self.user_repository.get_by_email(email):
            self.logger.warning(f"Registration failed - email already exists: {email}")
            raise ConflictException("Email already registered")
        if phone and self.user_repository.get_by_phone(phone):
            self.logger.warning("Registration failed - phone already registered")
            raise ConflictException("Phone number already registered")

    def _issue_tokens(self, user: User) -> Dict[str, Any]:
        claims = token_claims(user)
        return {
            "user": serialize_user(user),
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
            "token_type": "bearer",
        }

    @BaseService.measure_operation("register_user")
    def register_customer(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a new customer account with its profile.

        Raises:
            ConflictException: If the email or phone is already registered
        """
        email = email.strip().lower()
        phone = phone.strip() if phone else None
        self._ensure_unique_contact(email, phone)

        with self.transaction():
            user = User(
                role=UserRole.CUSTOMER.value,
                name=name.strip(),
                email=email,
                phone=phone,
                hashed_password=get_password_hash(password),
                status=UserStatus.ACTIVE.value,
            )
            self.db.add(user)
            self.db.flush()
            self.db.add(Customer(user_id=user.id))
            self.db.flush()
            self.db.refresh(user)

        self.logger.info(f"Customer registered: {user.id}")
        return self._issue_tokens(user)

    @BaseService.measure_operation("login")
    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.user_repository.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            self.logger.warning("Login failed - invalid credentials")
            raise UnauthorizedException("Invalid credentials", code="INVALID_CREDENTIALS")
        if not user.is_active:
            raise UnauthorizedException("Account is inactive", code="ACCOUNT_INACTIVE")
        return self._issue_tokens(user)

    @BaseService.measure_operation("refresh_token")
    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        try:
            payload = decode_refresh_token(refresh_token)
        except PyJWTError as exc:
            self.logger.info(f"Refresh rejected: {exc}")
            raise UnauthorizedException("Invalid refresh token", code="INVALID_TOKEN")

        user = self.user_repository.get_by_id(payload.get("sub", ""), load_relationships=False)
        if user is None or not user.is_active:
            raise UnauthorizedException("Invalid refresh token", code="INVALID_TOKEN")
        return {
            "access_token": create_access_token(token_claims(user)),
            "token_type": "bearer",
        }

    def describe_user(self, user: User) -> Dict[str, Any]:
        data = serialize_user(user)
        if user.customer_profile is not None:
            profile = user.customer_profile
            data["profile"] = {
                "date_of_birth": profile.date_of_birth,
                "health_notes": profile.health_notes,
                "preferred_teacher_id": profile.preferred_teacher_id,
                "emergency_contact_name": profile.emergency_contact_name,
                "emergency_contact_phone": profile.emergency_contact_phone,
            }
        elif user.teacher_profile is not None:
            profile = user.teacher_profile
            data["profile"] = {
                "bio": profile.bio,
                "specialties": profile.specialties or [],
                "teacher_type": profile.teacher_type,
                "image_url": profile.image_url,
            }
        return data

    # Teacher accounts (admin)

    @BaseService.measure_operation("create_teacher")
    def create_teacher(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        bio: Optional[str] = None,
        specialties: Optional[List[str]] = None,
        years_of_experience: Optional[int] = None,
        teacher_type: str = TeacherType.FREELANCE.value,
    ) -> Teacher:
        email = email.strip().lower()
        phone = phone.strip() if phone else None
        self._ensure_unique_contact(email, phone)

        with self.transaction():
            user = User(
                role=UserRole.TEACHER.value,
                name=name.strip(),
                email=email,
                phone=phone,
                hashed_password=get_password_hash(password),
                status=UserStatus.ACTIVE.value,
            )
            self.db.add(user)
            self.db.flush()
            teacher = Teacher(
                user_id=user.id,
                bio=bio or "",
                specialties=specialties or [],
                years_of_experience=years_of_experience or 0,
                teacher_type=teacher_type,
                is_active=True,
            )
            self.db.add(teacher)
            self.db.flush()
            self.db.refresh(teacher)

        self.logger.info(f"Teacher account created: {teacher.id}")
        return teacher
