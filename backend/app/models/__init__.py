"""
Database models for the Core Studio Pilates platform.

The models are organized by functionality:
- Accounts and profiles (User, Customer, Teacher)
- Sales (Package, Payment, PackageRequest)
- Scheduling (Booking, including time blocks)
- Messaging (Notification, InAppNotification, MessageTemplate)
- Finance (PaymentReport, Expense)
"""

from .booking import Booking, BookingStatus
from .customer import Customer
from .notification import InAppNotification, MessageTemplate, Notification, NotificationStatus
from .package import Package, PackageStatus
from .package_request import PackageRequest, PackageRequestStatus
from .payment import Payment
from .report import Expense, PaymentReport
from .teacher import Teacher
from .user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "Customer",
    "Expense",
    "InAppNotification",
    "MessageTemplate",
    "Notification",
    "NotificationStatus",
    "Package",
    "PackageRequest",
    "PackageRequestStatus",
    "PackageStatus",
    "Payment",
    "PaymentReport",
    "Teacher",
    "User",
]
