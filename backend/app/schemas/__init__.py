# backend/app/schemas/__init__.py
"""
Pydantic schemas for the studio API.

Request models extend ``StrictRequestModel`` (unknown fields are rejected);
response models extend ``StandardizedModel``.
"""

from .auth import AccessTokenResponse, AuthResponse, LoginRequest, RefreshRequest, RegisterRequest, UserResponse
from .availability import (
    AvailabilityResponse,
    BlockConflict,
    BlockCreate,
    BlockCreateResponse,
    BlockResponse,
    DayAvailability,
    RecurringOptions,
    SlotResponse,
)
from .base import CountResponse, MessageResponse, Money, StandardizedModel, StrictRequestModel
from .booking import (
    AttendanceUpdate,
    BookingCancel,
    BookingConfirm,
    BookingListResponse,
    BookingReject,
    BookingRequestCreate,
    BookingResponse,
    CancelBookingResponse,
    ManualSessionCreate,
)
from .customer import CustomerListResponse, CustomerOverview, CustomerProfileUpdate, CustomerResponse
from .health import HealthResponse
from .line import LineLinkRequest, LineStatusResponse, LineWebhookResponse
from .notifications import (
    InAppNotificationResponse,
    MessageTemplateResponse,
    MessageTemplateUpdate,
    NotificationListResponse,
)
from .package import (
    PackageCreate,
    PackageListResponse,
    PackageRequestApprove,
    PackageRequestCreate,
    PackageRequestReject,
    PackageRequestResponse,
    PackageResponse,
    PackageUpdate,
    PaymentInput,
)
from .report import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate,
    MonthlyFinanceResponse,
    ReportGenerate,
    ReportResponse,
    TeacherPayment,
)
from .teacher import TeacherCreate, TeacherDetail, TeacherPublic

__all__ = [
    # Auth
    "AccessTokenResponse",
    "AuthResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "UserResponse",
    # Availability
    "AvailabilityResponse",
    "BlockConflict",
    "BlockCreate",
    "BlockCreateResponse",
    "BlockResponse",
    "DayAvailability",
    "RecurringOptions",
    "SlotResponse",
    # Base
    "CountResponse",
    "MessageResponse",
    "Money",
    "StandardizedModel",
    "StrictRequestModel",
    # Bookings
    "AttendanceUpdate",
    "BookingCancel",
    "BookingConfirm",
    "BookingListResponse",
    "BookingReject",
    "BookingRequestCreate",
    "BookingResponse",
    "CancelBookingResponse",
    "ManualSessionCreate",
    # Customers
    "CustomerListResponse",
    "CustomerOverview",
    "CustomerProfileUpdate",
    "CustomerResponse",
    # Health
    "HealthResponse",
    # LINE
    "LineLinkRequest",
    "LineStatusResponse",
    "LineWebhookResponse",
    # Notifications
    "InAppNotificationResponse",
    "MessageTemplateResponse",
    "MessageTemplateUpdate",
    "NotificationListResponse",
    # Packages
    "PackageCreate",
    "PackageListResponse",
    "PackageRequestApprove",
    "PackageRequestCreate",
    "PackageRequestReject",
    "PackageRequestResponse",
    "PackageResponse",
    "PackageUpdate",
    "PaymentInput",
    # Reports
    "ExpenseCreate",
    "ExpenseResponse",
    "ExpenseUpdate",
    "MonthlyFinanceResponse",
    "ReportGenerate",
    "ReportResponse",
    "TeacherPayment",
    # Teachers
    "TeacherCreate",
    "TeacherDetail",
    "TeacherPublic",
]
