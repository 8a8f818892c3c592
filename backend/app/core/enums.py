# backend/app/core/enums.py
"""
Core enums for the Core Studio Pilates platform.

Values match the strings stored in the database and exchanged with the
web client, so they must not be renamed casually.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    TEACHER = "teacher"
    CUSTOMER = "customer"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SessionType(str, Enum):
    """
    Session kinds sold in packages and booked into slots.

    BLOCKED is only used for booking rows that represent a time block.
    """

    PRIVATE = "private"
    DUO = "duo"
    GROUP = "group"
    BLOCKED = "blocked"

    @classmethod
    def bookable(cls) -> list["SessionType"]:
        return [cls.PRIVATE, cls.DUO, cls.GROUP]


class TeacherType(str, Enum):
    FREELANCE = "freelance"
    STUDIO = "studio"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"


class NotificationChannel(str, Enum):
    LINE = "line"
    EMAIL = "email"


class NotificationType(str, Enum):
    """Outbound message types, each backed by a message template of the same key."""

    REMINDER_24H = "REMINDER_24H"
    REMINDER_6H = "REMINDER_6H"
    MISSED_SESSION = "MISSED_SESSION"
    INACTIVE_30D = "INACTIVE_30D"
    PROMO = "PROMO"
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_REMINDER = "BOOKING_REMINDER"
    PACKAGE_EXPIRING = "PACKAGE_EXPIRING"
    WELCOME = "WELCOME"


class InAppNotificationType(str, Enum):
    BOOKING_REQUESTED = "booking_requested"
    BOOKING_APPROVED = "booking_approved"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    CANCELLATION_REQUESTED = "cancellation_requested"
    SESSION_ADDED = "session_added"
    PACKAGE_REQUESTED = "package_requested"
    PACKAGE_APPROVED = "package_approved"
    PACKAGE_REJECTED = "package_rejected"


class ReportType(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
