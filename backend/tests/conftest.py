# backend/tests/conftest.py
"""
Pytest configuration for the studio backend.

Tests run against an in-memory SQLite database that is created and dropped
for every test. LINE is never contacted: services and routes receive a
mocked ``LineClient``.
"""

import os
import sys

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["IS_TESTING"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("CI", "1")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from typing import Dict
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  (registers mappers)
from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_line_client_dep
from app.core.config import settings
from app.core.enums import UserRole
from app.database import Base
from app.integrations.line_client import LineClient
from app.main import app
from app.models.package import Package
from app.models.user import User
from app.services.notification_service import NotificationService
from tests.factories.studio_builders import (
    auth_headers_for,
    make_customer,
    make_package,
    make_teacher,
    make_user,
)

settings.is_testing = True

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


# ============================================================================
# Database and client
# ============================================================================


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def line_client() -> MagicMock:
    """Stand-in for the LINE Messaging API client."""
    client = MagicMock(spec=LineClient)
    client.configured = True
    client.push_text.return_value = True
    client.reply_text.return_value = True
    client.verify_signature.return_value = True
    return client


@pytest.fixture
def notification_service(db: Session, line_client: MagicMock) -> NotificationService:
    return NotificationService(db, line_client)


@pytest.fixture
def client(db: Session, line_client: MagicMock):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_line_client_dep] = lambda: line_client

    # Don't use context manager - avoids running the startup lifespan
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Users
# ============================================================================


@pytest.fixture
def admin_user(db: Session) -> User:
    user = make_user(db, "admin@studio.example.com", "Studio Admin", role=UserRole.ADMIN.value)
    db.commit()
    return user


@pytest.fixture
def teacher_user(db: Session) -> User:
    return make_teacher(db, "ploy@studio.example.com", "Ploy", line_user_id="U-teacher")


@pytest.fixture
def second_teacher_user(db: Session) -> User:
    return make_teacher(db, "nan@studio.example.com", "Nan")


@pytest.fixture
def customer_user(db: Session) -> User:
    return make_customer(
        db, "customer@example.com", "Mali Customer", phone="0812345678", line_user_id="U-customer"
    )


@pytest.fixture
def other_customer_user(db: Session) -> User:
    return make_customer(db, "other@example.com", "Other Customer")


@pytest.fixture
def customer_package(db: Session, customer_user: User) -> Package:
    return make_package(db, customer_user.customer_profile)


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def teacher_headers(teacher_user: User) -> Dict[str, str]:
    return auth_headers_for(teacher_user)


@pytest.fixture
def customer_headers(customer_user: User) -> Dict[str, str]:
    return auth_headers_for(customer_user)
