from __future__ import annotations

from datetime import date, datetime, time, timezone
from types import SimpleNamespace

import pytest

from app.core.exceptions import NotFoundException, ValidationException
from app.core.timezone_utils import studio_datetime, to_studio_time
from app.services.report_service import ReportService, date_range, teacher_payment
from tests.factories.studio_builders import make_booking, make_package, make_teacher


@pytest.fixture
def service(db):
    return ReportService(db)


class TestDateRange:
    def test_monthly_uses_studio_midnight(self):
        start, end = date_range(2029, 3, "monthly")
        assert start == datetime(2029, 2, 28, 17, 0, tzinfo=timezone.utc)
        local_end = to_studio_time(end)
        assert (local_end.month, local_end.day, local_end.hour) == (3, 31, 23)

    @pytest.mark.parametrize(
        "report_type,month,first,last",
        [
            ("quarterly", 5, date(2029, 4, 1), date(2029, 6, 30)),
            ("half-yearly", 8, date(2029, 7, 1), date(2029, 12, 31)),
            ("yearly", 11, date(2029, 1, 1), date(2029, 12, 31)),
        ],
    )
    def test_longer_periods(self, report_type, month, first, last):
        start, end = date_range(2029, month, report_type)
        assert to_studio_time(start).date() == first
        assert to_studio_time(end).date() == last

    def test_invalid_input(self):
        with pytest.raises(ValidationException):
            date_range(2029, 13, "monthly")
        with pytest.raises(ValidationException):
            date_range(2029, 1, "weekly")


def test_teacher_payment_freelance_rates():
    teacher = SimpleNamespace(id="t1", name="Ploy", teacher_type="freelance")
    payment = teacher_payment(teacher, {"private": 2, "duo": 1, "group": 1})
    assert payment["sessions"]["private"] == {"count": 2, "commission": 800.0}
    assert payment["total_commission"] == 800 + 600 + 840
    assert payment["base_salary"] == 0
    assert payment["total_sessions"] == 4


def test_teacher_payment_studio_salary():
    teacher = SimpleNamespace(id="t2", name="Nan", teacher_type="studio")
    payment = teacher_payment(teacher, {"private": 5})
    assert payment["total_commission"] == 0
    assert payment["total_payment"] == 35000


@pytest.fixture
def march_activity(db, customer_user, teacher_user):
    """Two packages sold and three completed sessions in March 2029."""
    customer = customer_user.customer_profile
    teacher = teacher_user.teacher_profile
    sold_at = studio_datetime(date(2029, 3, 10), time(12, 0))
    private = make_package(db, customer, type="private", price="12000")
    duo = make_package(db, customer, type="duo", price="8000")
    for package in (private, duo):
        package.created_at = sold_at
    db.commit()

    session_day = date(2029, 3, 15)
    make_booking(db, customer, teacher, studio_datetime(session_day, time(9, 0)), status="completed", package=private)
    make_booking(db, customer, teacher, studio_datetime(session_day, time(11, 0)), status="completed", package=private)
    make_booking(db, customer, teacher, studio_datetime(session_day, time(13, 0)), status="completed", package=duo, type="duo")
    # Outside the period
    make_booking(db, customer, teacher, studio_datetime(date(2029, 4, 1), time(9, 0)), status="completed", package=private)
    return private, duo


class TestGenerate:
    def test_generate_monthly_report(self, db, service, admin_user, march_activity):
        make_teacher(db, "studio@studio.example.com", "Studio Staff", teacher_type="studio")
        make_teacher(db, "idle@studio.example.com", "Idle Freelancer")

        report = service.generate_report(2029, 3, actor=admin_user)

        assert float(report.total_revenue) == 20000
        assert report.total_packages_sold == 2
        names = {p["teacher_name"]: p for p in report.teacher_payments}
        assert set(names) == {"Ploy", "Studio Staff"}
        assert names["Ploy"]["total_sessions"] == 3
        assert names["Ploy"]["total_payment"] == 400 * 2 + 600
        assert names["Studio Staff"]["total_payment"] == 35000
        assert float(report.total_teacher_payments) == 1400 + 35000
        assert float(report.profit_loss) == 20000 - 36400
        assert report.generated_by == admin_user.id

    def test_regenerate_updates_in_place_and_keeps_expenses(self, db, service, admin_user, march_activity):
        report = service.generate_report(2029, 3)
        service.add_expense(report.id, "Rent", "15000", "March rent", actor=admin_user)

        again = service.generate_report(2029, 3)
        assert again.id == report.id
        assert len(again.expenses) == 1
        assert float(again.total_expenses) == 15000
        assert float(again.total_costs) == 1400 + 15000
        assert len(service.list_reports(year=2029)) == 1

    def test_empty_period(self, service):
        report = service.generate_report(2029, 1, "quarterly")
        assert report.teacher_payments == []
        assert float(report.profit_loss) == 0


class TestExpenses:
    def test_add_update_delete_recalculate(self, service, admin_user):
        report = service.generate_report(2029, 6)
        report = service.add_expense(report.id, "Utilities", 3000, actor=admin_user)
        expense_id = report.expenses[0].id
        assert float(report.total_expenses) == 3000
        assert float(report.profit_loss) == -3000

        report = service.update_expense(report.id, expense_id, amount="4500", description="Electricity")
        assert float(report.total_expenses) == 4500
        assert report.expenses[0].description == "Electricity"

        report = service.delete_expense(report.id, expense_id)
        assert report.expenses == []
        assert float(report.total_costs) == 0

    def test_validation(self, service):
        report = service.generate_report(2029, 6)
        with pytest.raises(ValidationException):
            service.add_expense(report.id, "Rent", 0)
        with pytest.raises(ValidationException):
            service.add_expense(report.id, "   ", 100)
        with pytest.raises(NotFoundException):
            service.update_expense(report.id, "missing", amount=10)
        with pytest.raises(NotFoundException):
            service.add_expense("missing", "Rent", 100)

    def test_delete_report(self, service):
        report = service.generate_report(2029, 6)
        service.delete_report(report.id)
        with pytest.raises(NotFoundException):
            service.get_report(report.id)


def test_monthly_finance(service, march_activity):
    finance = service.monthly_finance(2029, 3)
    assert finance["total_revenue"] == 20000
    assert finance["revenue_by_type"] == {"private": 12000.0, "duo": 8000.0}
    assert finance["sessions_completed"] == 3
    assert finance["packages_sold"][0]["purchase_date"].startswith("2029-03-10")


def test_period_boundaries_follow_studio_time(db, service, customer_user):
    package = make_package(db, customer_user.customer_profile, price="5000")
    # 00:30 on 1 April in Bangkok is still 31 March in UTC
    package.created_at = studio_datetime(date(2029, 4, 1), time(0, 30))
    db.commit()
    assert service.monthly_finance(2029, 3)["total_revenue"] == 0
    assert service.monthly_finance(2029, 4)["total_revenue"] == 5000
