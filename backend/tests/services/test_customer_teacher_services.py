from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.core.timezone_utils import to_studio_time, utc_now
from app.services.customer_service import CustomerService
from app.services.teacher_service import TeacherService
from tests.factories.studio_builders import future_slot, make_booking


@pytest.fixture
def customers(db):
    return CustomerService(db)


@pytest.fixture
def teachers(db):
    return TeacherService(db)


class TestCustomerService:
    def test_overview(self, db, customers, customer_user, teacher_user, customer_package):
        customer = customer_user.customer_profile
        teacher = teacher_user.teacher_profile
        upcoming = make_booking(db, customer, teacher, future_slot(), package=customer_package)
        make_booking(db, customer, teacher, future_slot(days=4), status="cancelled")

        overview = customers.get_my_overview(customer_user)
        assert overview["profile"]["email"] == "customer@example.com"
        assert overview["profile"]["line_connected"] is True
        assert overview["packages"][0]["upcoming_count"] == 1
        assert [b["id"] for b in overview["next_bookings"]] == [upcoming.id]

    def test_update_profile(self, customers, customer_user, teacher_user):
        customer = customers.update_profile(
            customer_user,
            {
                "name": "Mali S.",
                "health_notes": "Lower back pain",
                "preferred_teacher_id": teacher_user.teacher_profile.id,
                "phone": "0899999999",
            },
        )
        assert customer.health_notes == "Lower back pain"
        assert customer.preferred_teacher_id == teacher_user.teacher_profile.id
        assert customer_user.name == "Mali S."
        assert customer_user.phone == "0899999999"

    def test_update_profile_rejects_taken_phone(self, db, customers, customer_user, other_customer_user):
        other_customer_user.phone = "0811111111"
        db.commit()
        with pytest.raises(ConflictException):
            customers.update_profile(customer_user, {"phone": "0811111111"})

    def test_update_profile_rejects_unknown_teacher_and_future_birthday(self, customers, customer_user):
        with pytest.raises(NotFoundException):
            customers.update_profile(customer_user, {"preferred_teacher_id": "missing"})
        with pytest.raises(ValidationException):
            customers.update_profile(
                customer_user, {"date_of_birth": date.today() + timedelta(days=1)}
            )

    def test_list_and_search(self, customers, customer_user, other_customer_user):
        assert len(customers.list_customers()) == 2
        found = customers.list_customers("mali")
        assert [c["id"] for c in found] == [customer_user.customer_profile.id]

    def test_get_customer_missing(self, customers):
        with pytest.raises(NotFoundException):
            customers.get_customer("missing")


class TestTeacherService:
    def test_public_list_hides_inactive(self, db, teachers, teacher_user, second_teacher_user):
        second_teacher_user.teacher_profile.is_active = False
        db.commit()
        listed = teachers.list_teachers()
        assert [t["name"] for t in listed] == ["Ploy"]
        assert "email" not in listed[0]

    def test_sessions_today_and_range(self, db, teachers, teacher_user, customer_user):
        customer = customer_user.customer_profile
        teacher = teacher_user.teacher_profile
        start = future_slot(days=2)
        booking = make_booking(db, customer, teacher, start)
        make_booking(db, customer, teacher, future_slot(days=5))

        day = to_studio_time(start).date()
        assert [b.id for b in teachers.sessions_today(teacher_user, day=day)] == [booking.id]
        ranged = teachers.sessions(teacher_user, utc_now(), start + timedelta(days=1))
        assert [b.id for b in ranged] == [booking.id]

    def test_admin_may_view_any_teacher(self, teachers, admin_user, teacher_user):
        assert teachers.sessions(admin_user, teacher_id=teacher_user.teacher_profile.id) == []
        with pytest.raises(NotFoundException):
            teachers.sessions(admin_user)

    def test_admin_details(self, db, teachers, teacher_user, customer_user):
        make_booking(db, customer_user.customer_profile, teacher_user.teacher_profile, future_slot())
        details = teachers.list_teachers_with_details()
        assert details[0]["email"] == "ploy@studio.example.com"
        assert details[0]["upcoming_sessions_7d"] == 1
        assert teachers.get_teacher(teacher_user.teacher_profile.id)["teacher_type"] == "freelance"
        with pytest.raises(NotFoundException):
            teachers.get_teacher("missing")
