from app.core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    CancellationWindowClosedException,
    ConflictException,
    InsufficientNoticeException,
    NotFoundException,
    PackageUnavailableException,
    UnauthorizedException,
)


def test_http_detail_carries_message_code_and_details():
    exc = NotFoundException("Booking not found", details={"booking_id": "b1"})
    http_exc = exc.to_http_exception()
    assert http_exc.status_code == 404
    assert http_exc.detail == {
        "message": "Booking not found",
        "code": "NotFoundException",
        "details": {"booking_id": "b1"},
    }


def test_unauthorized_sets_bearer_challenge():
    http_exc = UnauthorizedException("Invalid credentials").to_http_exception()
    assert http_exc.status_code == 401
    assert http_exc.headers == {"WWW-Authenticate": "Bearer"}


def test_booking_conflict_defaults():
    exc = BookingConflictException(details={"reason": "teacher_busy"})
    assert isinstance(exc, ConflictException)
    assert exc.code == "BOOKING_CONFLICT"
    assert exc.message == "This time slot is not available"
    assert exc.to_http_exception().status_code == 409


def test_insufficient_notice_rounds_hours():
    exc = InsufficientNoticeException(24, 3.14159)
    assert exc.code == "INSUFFICIENT_NOTICE"
    assert exc.details == {"required_hours": 24, "provided_hours": 3.14}
    assert exc.to_http_exception().status_code == 400


def test_business_rule_is_unprocessable():
    exc = BusinessRuleException("Too late to cancel", code="CANCELLATION_WINDOW_CLOSED")
    assert exc.to_http_exception().status_code == 422


def test_cancellation_window_closed():
    exc = CancellationWindowClosedException(6, 1.5)
    assert isinstance(exc, BusinessRuleException)
    assert exc.code == "CANCELLATION_WINDOW_CLOSED"
    assert exc.details == {"hours_until_start": 1.5}
    assert "less than 6 hours" in exc.message


def test_package_unavailable_carries_package_id():
    exc = PackageUnavailableException("No sessions remaining in this package", "pkg1")
    assert exc.code == "PACKAGE_UNAVAILABLE"
    assert exc.details == {"package_id": "pkg1"}
    assert exc.to_http_exception().status_code == 400
    assert PackageUnavailableException("Package is not active").details == {}
