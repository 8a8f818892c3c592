# backend/app/repositories/report_repository.py
"""Financial report and expense data access."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from ..models.report import Expense, PaymentReport
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentReportRepository(BaseRepository[PaymentReport]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentReport)

    def _apply_eager_loading(self, query):
        return query.options(selectinload(PaymentReport.expenses))

    def get_for_period(self, year: int, month: int, report_type: str) -> Optional[PaymentReport]:
        return self._apply_eager_loading(self.db.query(PaymentReport)).filter(
            PaymentReport.year == year,
            PaymentReport.month == month,
            PaymentReport.report_type == report_type,
        ).first()

    def list_reports(
        self, year: Optional[int] = None, report_type: Optional[str] = None
    ) -> List[PaymentReport]:
        query = self._apply_eager_loading(self.db.query(PaymentReport))
        if year is not None:
            query = query.filter(PaymentReport.year == year)
        if report_type:
            query = query.filter(PaymentReport.report_type == report_type)
        query = query.order_by(PaymentReport.year.desc(), PaymentReport.month.desc())
        return self._run(query, "listing reports")


class ExpenseRepository(BaseRepository[Expense]):
    def __init__(self, db: Session):
        super().__init__(db, Expense)

    def list_for_report(self, report_id: str) -> List[Expense]:
        query = (
            self.db.query(Expense)
            .filter(Expense.report_id == report_id)
            .order_by(Expense.created_at.desc())
        )
        return self._run(query, "listing expenses")
