# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import (
    admin,
    auth,
    availability,
    bookings,
    customers,
    health,
    line,
    notifications,
    packages,
    teachers,
)

__all__ = [
    "admin",
    "auth",
    "availability",
    "bookings",
    "customers",
    "health",
    "line",
    "notifications",
    "packages",
    "teachers",
]
