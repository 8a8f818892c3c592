from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import BookingConflictException, InsufficientNoticeException
from app.services.conflict_checker import ConflictChecker
from tests.factories.studio_builders import future_slot, make_booking


@pytest.fixture
def checker(db):
    return ConflictChecker(db)


def test_validate_advance_notice(checker):
    now = datetime(2030, 1, 1, 0, 0, tzinfo=timezone.utc)
    checker.validate_advance_notice(now + timedelta(hours=24), now)
    with pytest.raises(InsufficientNoticeException) as exc_info:
        checker.validate_advance_notice(now + timedelta(hours=5), now)
    assert exc_info.value.code == "INSUFFICIENT_NOTICE"
    assert exc_info.value.details["required_hours"] == 24


def test_block_conflicts_cover_the_teachers_sessions(db, checker, teacher_user, second_teacher_user, customer_user):
    teacher = teacher_user.teacher_profile
    start = future_slot()
    own = make_booking(db, customer_user.customer_profile, teacher, start)
    make_booking(db, customer_user.customer_profile, second_teacher_user.teacher_profile, start)

    conflicts = checker.find_booking_conflicts(
        teacher.id, [(start + timedelta(minutes=30), start + timedelta(minutes=90))]
    )
    assert [c["booking_id"] for c in conflicts] == [own.id]
    assert conflicts[0]["teacher_name"] == teacher_user.name
    assert checker.find_booking_conflicts(
        teacher.id, [(start + timedelta(hours=1), start + timedelta(hours=2))]
    ) == []


def test_cancelled_and_requested_sessions_are_not_reported(db, checker, teacher_user, customer_user):
    teacher = teacher_user.teacher_profile
    start = future_slot()
    make_booking(db, customer_user.customer_profile, teacher, start, status="cancelled")
    make_booking(
        db, customer_user.customer_profile, teacher, start, status="cancellationRequested"
    )
    assert checker.find_booking_conflicts(teacher.id, [(start, start + timedelta(hours=1))]) == []


def test_studio_wide_block_reports_every_teacher_once(
    db, checker, teacher_user, second_teacher_user, customer_user
):
    start = future_slot()
    make_booking(db, customer_user.customer_profile, teacher_user.teacher_profile, start)
    make_booking(db, customer_user.customer_profile, second_teacher_user.teacher_profile, start)
    intervals = [
        (start, start + timedelta(hours=1)),
        (start - timedelta(minutes=30), start + timedelta(minutes=30)),
    ]

    conflicts = checker.find_booking_conflicts(None, intervals)

    assert len(conflicts) == 2
    assert {c["status"] for c in conflicts} == {"confirmed"}


def test_ensure_slot_bookable_partial_slot_rejects_group(
    db, checker, teacher_user, second_teacher_user, customer_user
):
    start = future_slot()
    end = start + timedelta(hours=1)
    make_booking(db, customer_user.customer_profile, second_teacher_user.teacher_profile, start)

    slot = checker.ensure_slot_bookable(teacher_user.teacher_profile.id, start, end, "private")
    assert slot.status.value == "partial"

    with pytest.raises(BookingConflictException) as exc_info:
        checker.ensure_slot_bookable(teacher_user.teacher_profile.id, start, end, "group")
    assert exc_info.value.details["allowed_types"] == ["private", "duo"]


def test_ensure_slot_bookable_blocked_by_group_class(
    db, checker, teacher_user, second_teacher_user, customer_user
):
    start = future_slot()
    make_booking(
        db, customer_user.customer_profile, second_teacher_user.teacher_profile, start, type="group"
    )
    with pytest.raises(BookingConflictException) as exc_info:
        checker.ensure_slot_bookable(
            teacher_user.teacher_profile.id, start, start + timedelta(hours=1), "private"
        )
    assert exc_info.value.code == "BOOKING_CONFLICT"
    assert exc_info.value.details["reason"] == "Studio group class in session"


def test_recurring_block_occurrence_is_loaded(db, checker, teacher_user):
    teacher = teacher_user.teacher_profile
    first = future_slot(days=2)
    make_booking(
        db,
        None,
        teacher,
        first,
        type="blocked",
        block_reason="Weekly training",
        recurrence_frequency="weekly",
    )
    next_week = first + timedelta(days=7)
    with pytest.raises(BookingConflictException) as exc_info:
        checker.ensure_slot_bookable(teacher.id, next_week, next_week + timedelta(hours=1), "private")
    assert exc_info.value.details["reason"] == "Weekly training"


def test_ensure_slot_bookable_ignores_the_booking_being_moved(db, checker, teacher_user, customer_user):
    teacher = teacher_user.teacher_profile
    start = future_slot()
    end = start + timedelta(hours=1)
    booking = make_booking(db, customer_user.customer_profile, teacher, start)

    with pytest.raises(BookingConflictException):
        checker.ensure_slot_bookable(teacher.id, start, end, "private")
    slot = checker.ensure_slot_bookable(teacher.id, start, end, "private", exclude_booking_id=booking.id)
    assert slot.is_bookable
