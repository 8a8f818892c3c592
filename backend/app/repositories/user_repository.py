# backend/app/repositories/user_repository.py
"""
User Repository for the studio platform.

Account lookups used by authentication, LINE linking and admin fan-out.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from ..core.enums import UserRole, UserStatus
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def _apply_eager_loading(self, query):
        return query.options(
            joinedload(User.customer_profile),
            joinedload(User.teacher_profile),
        )

    # ==========================================
    # Basic Lookups
    # ==========================================

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup; emails are stored lower-cased."""
        return self.find_one_by(email=email.strip().lower())

    def get_by_phone(self, phone: str) -> Optional[User]:
        return self.find_one_by(phone=phone.strip())

    def get_by_line_user_id(self, line_user_id: str) -> Optional[User]:
        return self.find_one_by(line_user_id=line_user_id)

    def find_by_contact(self, text: str) -> Optional[User]:
        """Match free text sent over LINE against an email or phone number."""
        candidate = text.strip()
        if not candidate:
            return None
        if "@" in candidate:
            return self.get_by_email(candidate)
        normalized = "".join(ch for ch in candidate if ch.isdigit() or ch == "+")
        if not normalized:
            return None
        return self.get_by_phone(normalized) or self.get_by_phone(candidate)

    # ==========================================
    # Role queries
    # ==========================================

    def list_active_admins(self) -> List[User]:
        return self._run(
            self.db.query(User).filter(
                User.role == UserRole.ADMIN.value,
                User.status == UserStatus.ACTIVE.value,
            ),
            "listing admins",
        )
