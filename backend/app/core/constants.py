"""Application-wide constants for the Core Studio Pilates platform."""

from __future__ import annotations

BRAND_NAME = "Core Studio Pilates"

# API metadata
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Booking, packages, teacher scheduling and reporting for a Pilates studio"
API_VERSION = "1.0.0"

# Manual sessions may start between 07:00 and 21:00 studio time (ending by 22:00)
MANUAL_SESSION_FIRST_HOUR = 7
MANUAL_SESSION_LAST_HOUR = 21
MANUAL_SESSION_DURATION_MINUTES = 60

# Reminder windows (hours before start, tolerance in minutes)
REMINDER_24H_HOURS = 24
REMINDER_24H_TOLERANCE_MINUTES = 60
REMINDER_6H_HOURS = 6
REMINDER_6H_TOLERANCE_MINUTES = 30

# Re-engagement messages
INACTIVE_CUSTOMER_DAYS = 30
MISSED_SESSION_LOOKBACK_HOURS = 48

# Text constraints
MAX_NOTE_LENGTH = 1000
MAX_REASON_LENGTH = 255

AUTO_CONFIRM_NOTE = "[Auto-confirmed after 12 hours - teacher did not respond]"
DEFAULT_REQUEST_REJECTION_REASON = "Request rejected by admin"

# Teacher compensation per completed session, by employment type
PAYMENT_RATES = {
    "freelance": {"private": 400, "duo": 600, "group": 840, "base_salary": 0},
    "studio": {"private": 0, "duo": 0, "group": 0, "base_salary": 35000},
}
