"""Teacher directory and admin teacher management schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from .base import StandardizedModel, StrictRequestModel


class TeacherCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    phone: Optional[str] = Field(None, max_length=32)
    bio: Optional[str] = Field(None, max_length=2000)
    specialties: List[str] = Field(default_factory=list)
    years_of_experience: Optional[int] = Field(None, ge=0, le=80)
    teacher_type: Literal["freelance", "studio"] = "freelance"


class TeacherPublic(StandardizedModel):
    id: str
    name: str
    bio: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    years_of_experience: Optional[int] = None
    image_url: Optional[str] = None


class TeacherDetail(TeacherPublic):
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    line_connected: bool = False
    teacher_type: str
    hourly_rate: Optional[float] = None
    default_location: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    upcoming_sessions_7d: Optional[int] = None
