# backend/app/models/report.py
"""Financial payment reports and the expenses recorded against them."""

from typing import Any

from sqlalchemy import JSON, Column, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime
from .user import _utcnow


class PaymentReport(Base):
    """
    Snapshot of revenue, teacher pay and expenses for one period.

    A period is identified by (year, month, report_type); regenerating a
    report updates the row in place and keeps its expenses.
    """

    __tablename__ = "payment_reports"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    report_type = Column(String(20), nullable=False, default="monthly")
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=False)

    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    teacher_payments = Column(JSON, nullable=False, default=list)
    total_teacher_payments = Column(Numeric(12, 2), nullable=False, default=0)
    packages_sold = Column(JSON, nullable=False, default=list)
    total_packages_sold = Column(Integer, nullable=False, default=0)
    total_expenses = Column(Numeric(12, 2), nullable=False, default=0)
    total_costs = Column(Numeric(12, 2), nullable=False, default=0)
    profit_loss = Column(Numeric(12, 2), nullable=False, default=0)
    generated_by = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    expenses = relationship(
        "Expense",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="Expense.created_at",
    )

    __table_args__ = (
        UniqueConstraint("year", "month", "report_type", name="uq_payment_report_period"),
    )

    def __repr__(self) -> str:
        return f"<PaymentReport {self.report_type} {self.year}-{self.month:02d}>"

    def recalculate_totals(self) -> None:
        """Recompute expense totals, costs and profit/loss from current values."""
        self.total_expenses = sum(float(exp.amount) for exp in self.expenses)
        self.total_costs = float(self.total_teacher_payments or 0) + float(self.total_expenses)
        self.profit_loss = float(self.total_revenue or 0) - float(self.total_costs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "month": self.month,
            "year": self.year,
            "report_type": self.report_type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "total_revenue": float(self.total_revenue or 0),
            "teacher_payments": self.teacher_payments or [],
            "total_teacher_payments": float(self.total_teacher_payments or 0),
            "packages_sold": self.packages_sold or [],
            "total_packages_sold": self.total_packages_sold,
            "expenses": [expense.to_dict() for expense in self.expenses],
            "total_expenses": float(self.total_expenses or 0),
            "total_costs": float(self.total_costs or 0),
            "profit_loss": float(self.profit_loss or 0),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    report_id = Column(
        String(26), ForeignKey("payment_reports.id", ondelete="CASCADE"), nullable=False
    )
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    category = Column(String(80), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    report = relationship("PaymentReport", back_populates="expenses")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "report_id": self.report_id,
            "category": self.category,
            "amount": float(self.amount or 0),
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at,
        }
