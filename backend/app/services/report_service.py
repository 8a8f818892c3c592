# backend/app/services/report_service.py
"""
Financial reports for the studio.

A report covers one period (monthly, quarterly, half-yearly or yearly) in
studio local time and snapshots:

- revenue from packages sold in the period
- what each teacher is owed for completed sessions
- expenses entered by admins against the report

Regenerating a period updates the existing report and keeps its expenses.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import PAYMENT_RATES
from ..core.enums import ReportType, SessionType, TeacherType
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import studio_datetime
from ..models.report import Expense, PaymentReport
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_PERIOD_MONTHS = {
    ReportType.MONTHLY.value: 1,
    ReportType.QUARTERLY.value: 3,
    ReportType.HALF_YEARLY.value: 6,
    ReportType.YEARLY.value: 12,
}


def date_range(year: int, month: int, report_type: str) -> Tuple[datetime, datetime]:
    """
    UTC bounds of the report period containing ``month``.

    The end bound is the last microsecond of the period so it can be used
    with inclusive comparisons.
    """
    if report_type not in _PERIOD_MONTHS:
        raise ValidationException(f"Invalid report type: {report_type}")
    if month < 1 or month > 12:
        raise ValidationException("Invalid month. Must be between 1 and 12")

    span = _PERIOD_MONTHS[report_type]
    first_month = ((month - 1) // span) * span + 1
    start_day = date(year, first_month, 1)
    end_month = first_month + span
    end_day = date(year + 1, 1, 1) if end_month > 12 else date(year, end_month, 1)

    start = studio_datetime(start_day, time(0, 0))
    end = studio_datetime(end_day, time(0, 0)) - timedelta(microseconds=1)
    return start, end


def _session_type(booking: Any) -> str:
    if booking.package is not None and booking.package.type in PAYMENT_RATES["freelance"]:
        return booking.package.type
    if booking.type in (SessionType.PRIVATE.value, SessionType.DUO.value):
        return booking.type
    return SessionType.GROUP.value


def teacher_payment(teacher: Any, counts: Dict[str, int]) -> Dict[str, Any]:
    """Compensation for one teacher given completed-session counts per type."""
    teacher_type = teacher.teacher_type or TeacherType.FREELANCE.value
    rates = PAYMENT_RATES.get(teacher_type, PAYMENT_RATES[TeacherType.FREELANCE.value])

    sessions = {}
    total_commission = 0.0
    for kind in ("private", "duo", "group"):
        commission = float(counts.get(kind, 0) * rates[kind])
        sessions[kind] = {"count": counts.get(kind, 0), "commission": commission}
        total_commission += commission

    base_salary = float(rates["base_salary"])
    return {
        "teacher_id": teacher.id,
        "teacher_name": teacher.name,
        "teacher_type": teacher_type,
        "sessions": sessions,
        "total_sessions": sum(counts.values()),
        "total_commission": total_commission,
        "base_salary": base_salary,
        "total_payment": total_commission + base_salary,
    }


class ReportService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_payment_report_repository(db)
        self.expense_repository = RepositoryFactory.create_expense_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    # ------------------------------------------------------------------
    # Calculations
    # ------------------------------------------------------------------

    def _packages_sold(self, start: datetime, end: datetime) -> Tuple[List[Dict[str, Any]], float]:
        packages = self.package_repository.list_created_between(start, end)
        sold = [
            {
                "package_id": p.id,
                "customer_id": p.customer_id,
                "customer_name": p.customer.name if p.customer is not None else "Unknown",
                "package_name": p.name,
                "package_type": p.type,
                "total_sessions": p.total_sessions,
                "price": float(p.price or 0),
                "purchase_date": p.created_at.isoformat(),
            }
            for p in packages
        ]
        return sold, sum(item["price"] for item in sold)

    def _teacher_payments(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        counts: Dict[str, Dict[str, int]] = {}
        for booking in self.booking_repository.list_completed_between(start, end):
            if not booking.teacher_id:
                continue
            per_type = counts.setdefault(booking.teacher_id, {})
            kind = _session_type(booking)
            per_type[kind] = per_type.get(kind, 0) + 1

        payments = []
        for teacher in self.teacher_repository.list_all():
            payment = teacher_payment(teacher, counts.get(teacher.id, {}))
            # Freelancers without sessions are owed nothing; studio staff still draw salary
            if payment["total_sessions"] == 0 and payment["teacher_type"] != TeacherType.STUDIO.value:
                continue
            payments.append(payment)
        return payments

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @BaseService.measure_operation("generate_report")
    def generate_report(
        self,
        year: int,
        month: int,
        report_type: str = ReportType.MONTHLY.value,
        actor: Optional[User] = None,
    ) -> PaymentReport:
        start, end = date_range(year, month, report_type)
        packages_sold, revenue = self._packages_sold(start, end)
        payments = self._teacher_payments(start, end)
        total_payments = sum(p["total_payment"] for p in payments)

        with self.transaction():
            report = self.repository.get_for_period(year, month, report_type)
            if report is None:
                report = self.repository.create(
                    year=year, month=month, report_type=report_type, start_date=start, end_date=end
                )
                self.logger.info(f"Creating {report_type} report for {year}-{month:02d}")
            else:
                self.logger.info(f"Regenerating {report_type} report for {year}-{month:02d}")
            report.start_date = start
            report.end_date = end
            report.total_revenue = revenue
            report.packages_sold = packages_sold
            report.total_packages_sold = len(packages_sold)
            report.teacher_payments = payments
            report.total_teacher_payments = total_payments
            report.generated_by = actor.id if actor else None
            report.recalculate_totals()

        return report

    def list_reports(
        self, year: Optional[int] = None, report_type: Optional[str] = None
    ) -> List[PaymentReport]:
        return self.repository.list_reports(year, report_type)

    def get_report(self, report_id: str) -> PaymentReport:
        report = self.repository.get_by_id(report_id)
        if report is None:
            raise NotFoundException("Report not found")
        return report

    @BaseService.measure_operation("delete_report")
    def delete_report(self, report_id: str) -> None:
        report = self.get_report(report_id)
        with self.transaction():
            self.db.delete(report)
        self.logger.info(f"Report {report_id} deleted")

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def _get_expense(self, report_id: str, expense_id: str) -> Expense:
        expense = self.expense_repository.get_by_id(expense_id)
        if expense is None or expense.report_id != report_id:
            raise NotFoundException("Expense not found")
        return expense

    @staticmethod
    def _check_amount(amount: Any) -> Decimal:
        value = Decimal(str(amount))
        if value <= 0:
            raise ValidationException("Amount must be greater than 0")
        return value

    def list_expenses(self, report_id: str) -> List[Expense]:
        self.get_report(report_id)
        return self.expense_repository.list_for_report(report_id)

    @BaseService.measure_operation("add_expense")
    def add_expense(
        self,
        report_id: str,
        category: str,
        amount: Any,
        description: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> PaymentReport:
        report = self.get_report(report_id)
        if not category or not category.strip():
            raise ValidationException("Category is required")
        value = self._check_amount(amount)

        with self.transaction():
            expense = Expense(
                month=report.month,
                year=report.year,
                category=category.strip(),
                amount=value,
                description=description,
                created_by=actor.id if actor else None,
            )
            report.expenses.append(expense)
            self.db.flush()
            report.recalculate_totals()
        return report

    @BaseService.measure_operation("update_expense")
    def update_expense(
        self,
        report_id: str,
        expense_id: str,
        category: Optional[str] = None,
        amount: Any = None,
        description: Optional[str] = None,
    ) -> PaymentReport:
        report = self.get_report(report_id)
        expense = self._get_expense(report_id, expense_id)
        with self.transaction():
            if category is not None:
                if not category.strip():
                    raise ValidationException("Category is required")
                expense.category = category.strip()
            if amount is not None:
                expense.amount = self._check_amount(amount)
            if description is not None:
                expense.description = description
            self.db.flush()
            report.recalculate_totals()
        return report

    @BaseService.measure_operation("delete_expense")
    def delete_expense(self, report_id: str, expense_id: str) -> PaymentReport:
        report = self.get_report(report_id)
        expense = self._get_expense(report_id, expense_id)
        with self.transaction():
            report.expenses.remove(expense)
            self.db.flush()
            report.recalculate_totals()
        return report

    # ------------------------------------------------------------------
    # Finance dashboard
    # ------------------------------------------------------------------

    def monthly_finance(self, year: int, month: int) -> Dict[str, Any]:
        start, end = date_range(year, month, ReportType.MONTHLY.value)
        packages_sold, revenue = self._packages_sold(start, end)
        completed = self.booking_repository.list_completed_between(start, end)

        by_type: Dict[str, float] = {}
        for item in packages_sold:
            by_type[item["package_type"]] = by_type.get(item["package_type"], 0.0) + item["price"]

        return {
            "year": year,
            "month": month,
            "total_revenue": revenue,
            "packages_sold": packages_sold,
            "total_packages_sold": len(packages_sold),
            "revenue_by_type": by_type,
            "sessions_completed": len(completed),
        }
