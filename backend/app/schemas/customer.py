"""Customer profile schemas."""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel
from .booking import BookingResponse
from .package import PackageResponse

Gender = Literal["male", "female", "other"]


class CustomerProfileUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    profession: Optional[str] = Field(None, max_length=80)
    health_notes: Optional[str] = Field(None, max_length=2000)
    preferred_teacher_id: Optional[str] = None
    emergency_contact_name: Optional[str] = Field(None, max_length=120)
    emergency_contact_phone: Optional[str] = Field(None, max_length=32)


class CustomerAdminUpdate(CustomerProfileUpdate):
    tags: Optional[List[str]] = Field(None, max_length=20)


class CustomerResponse(StandardizedModel):
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    line_connected: bool = False
    status: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    profession: Optional[str] = None
    health_notes: Optional[str] = None
    preferred_teacher_id: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class CustomerOverview(StandardizedModel):
    profile: CustomerResponse
    packages: List[PackageResponse]
    next_bookings: List[BookingResponse]


class CustomerListResponse(StandardizedModel):
    customers: List[CustomerResponse]
    total: int
