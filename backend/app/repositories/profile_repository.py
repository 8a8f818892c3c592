# backend/app/repositories/profile_repository.py
"""
Profile repositories for customers and teachers.

Both profile tables hang off ``users``; these repositories always load the
owning user since every caller needs the name or contact details.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Query, Session, joinedload

from ..models.customer import Customer
from ..models.teacher import Teacher
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository[Customer]):
    def __init__(self, db: Session):
        super().__init__(db, Customer)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Customer.user))

    def list_with_users(self, search: Optional[str] = None) -> List[Customer]:
        query = self._apply_eager_loading(self.db.query(Customer)).join(User)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                (User.name.ilike(pattern)) | (User.email.ilike(pattern)) | (User.phone.ilike(pattern))
            )
        return self._run(query.order_by(User.name), "listing customers")


class TeacherRepository(BaseRepository[Teacher]):
    def __init__(self, db: Session):
        super().__init__(db, Teacher)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Teacher.user))

    def list_active(self) -> List[Teacher]:
        query = (
            self._apply_eager_loading(self.db.query(Teacher))
            .join(User)
            .filter(Teacher.is_active.is_(True))
            .order_by(User.name)
        )
        return self._run(query, "listing active teachers")

    def list_all(self) -> List[Teacher]:
        query = self._apply_eager_loading(self.db.query(Teacher)).join(User).order_by(User.name)
        return self._run(query, "listing teachers")
