# backend/app/models/teacher.py
"""Teacher profile attached to a teacher user account."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import TeacherType
from ..database import Base
from .types import StringArrayType, UTCDateTime
from .user import _utcnow


class Teacher(Base):
    """
    Teacher profile.

    ``teacher_type`` drives compensation in financial reports: freelance
    teachers are paid per completed session, studio teachers a fixed salary.
    """

    __tablename__ = "teachers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    bio = Column(Text, nullable=True)
    specialties = Column(StringArrayType, nullable=True, default=list)
    years_of_experience = Column(Integer, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    default_location = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(512), nullable=True)
    teacher_type = Column(String(20), nullable=False, default=TeacherType.FREELANCE.value)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    user = relationship("User", back_populates="teacher_profile")

    def __repr__(self) -> str:
        return f"<Teacher {self.id} type={self.teacher_type} active={self.is_active}>"

    @property
    def name(self) -> str:
        return self.user.name if self.user else "Unknown"
