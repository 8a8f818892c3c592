# backend/app/services/teacher_service.py
"""
Teacher Service for the studio platform.

Public teacher directory plus the teacher's own session views.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..core.timezone_utils import ensure_utc, studio_day_bounds, studio_today, utc_now
from ..models.booking import Booking, BookingStatus
from ..models.teacher import Teacher
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def public_teacher_dict(teacher: Teacher) -> Dict[str, Any]:
    return {
        "id": teacher.id,
        "name": teacher.name,
        "bio": teacher.bio,
        "specialties": teacher.specialties or [],
        "years_of_experience": teacher.years_of_experience,
        "image_url": teacher.image_url,
    }


def teacher_detail_dict(teacher: Teacher) -> Dict[str, Any]:
    data = public_teacher_dict(teacher)
    user = teacher.user
    data.update(
        {
            "user_id": teacher.user_id,
            "email": user.email if user else None,
            "phone": user.phone if user else None,
            "line_connected": bool(user and user.has_line),
            "teacher_type": teacher.teacher_type,
            "hourly_rate": float(teacher.hourly_rate) if teacher.hourly_rate is not None else None,
            "default_location": teacher.default_location,
            "is_active": teacher.is_active,
            "created_at": teacher.created_at,
        }
    )
    return data


class TeacherService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_teacher_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def list_teachers(self) -> List[Dict[str, Any]]:
        """Active teachers for the public booking page."""
        return [public_teacher_dict(t) for t in self.repository.list_active()]

    def _profile_for(self, user: User, teacher_id: Optional[str]) -> Teacher:
        if teacher_id and user.is_admin:
            teacher = self.repository.get_by_id(teacher_id)
        else:
            teacher = user.teacher_profile
        if teacher is None:
            raise NotFoundException("Teacher profile not found")
        return teacher

    def sessions_today(
        self, user: User, teacher_id: Optional[str] = None, day: Optional[date] = None
    ) -> List[Booking]:
        teacher = self._profile_for(user, teacher_id)
        start, end = studio_day_bounds(day or studio_today())
        return self.booking_repository.list_for_teacher(teacher.id, start, end)

    def sessions(
        self,
        user: User,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        customer_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[Booking]:
        teacher = self._profile_for(user, teacher_id)
        return self.booking_repository.list_for_teacher(
            teacher.id,
            ensure_utc(start_from) if start_from else None,
            ensure_utc(start_to) if start_to else None,
            customer_id,
        )

    # Admin views

    def list_teachers_with_details(self, include_inactive: bool = True) -> List[Dict[str, Any]]:
        teachers = self.repository.list_all() if include_inactive else self.repository.list_active()
        now = utc_now()
        result = []
        for teacher in teachers:
            data = teacher_detail_dict(teacher)
            upcoming = self.booking_repository.list_for_teacher(
                teacher.id, now, now + timedelta(days=7)
            )
            data["upcoming_sessions_7d"] = sum(
                1 for b in upcoming if b.status == BookingStatus.CONFIRMED.value
            )
            result.append(data)
        return result

    def get_teacher(self, teacher_id: str) -> Dict[str, Any]:
        teacher = self.repository.get_by_id(teacher_id)
        if teacher is None:
            raise NotFoundException("Teacher not found")
        return teacher_detail_dict(teacher)
