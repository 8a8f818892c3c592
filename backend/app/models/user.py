# backend/app/models/user.py
"""
User model for the studio platform.

A single ``users`` table holds admins, teachers and customers; the role
column decides which profile table (``customers`` or ``teachers``) extends
the account.
"""

from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import UserRole, UserStatus
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Account used for login and notification delivery.

    Attributes:
        id: ULID primary key
        role: admin, teacher or customer
        name: Display name
        email: Unique, stored lower-cased
        phone: Optional, unique when present
        hashed_password: Bcrypt hash
        line_user_id: LINE Messaging API user id once linked
        status: active or inactive
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    line_user_id = Column(String(64), unique=True, nullable=True, index=True)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    customer_profile = relationship(
        "Customer",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    teacher_profile = relationship(
        "Teacher",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __init__(self, **kwargs: Any) -> None:
        if kwargs.get("email"):
            kwargs["email"] = kwargs["email"].strip().lower()
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER.value

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER.value

    @property
    def has_line(self) -> bool:
        return bool(self.line_user_id)
