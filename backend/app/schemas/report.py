"""Financial report and expense schemas."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field

from .base import Money, StandardizedModel, StrictRequestModel

ReportKind = Literal["monthly", "quarterly", "half-yearly", "yearly"]


class ReportGenerate(StrictRequestModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    report_type: ReportKind = "monthly"


class ExpenseCreate(StrictRequestModel):
    category: str = Field(..., min_length=1, max_length=80)
    amount: Money
    description: Optional[str] = Field(None, max_length=1000)


class ExpenseUpdate(StrictRequestModel):
    category: Optional[str] = Field(None, min_length=1, max_length=80)
    amount: Optional[Money] = None
    description: Optional[str] = Field(None, max_length=1000)


class ExpenseResponse(StandardizedModel):
    id: str
    report_id: str
    category: str
    amount: float
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class SessionCommission(StandardizedModel):
    count: int
    commission: float


class TeacherPayment(StandardizedModel):
    teacher_id: str
    teacher_name: str
    teacher_type: str
    sessions: Dict[str, SessionCommission]
    total_sessions: int
    total_commission: float
    base_salary: float
    total_payment: float


class PackageSold(StandardizedModel):
    package_id: str
    customer_id: str
    customer_name: str
    package_name: str
    package_type: str
    total_sessions: int
    price: float
    purchase_date: str


class ReportResponse(StandardizedModel):
    id: str
    month: int
    year: int
    report_type: str
    start_date: datetime
    end_date: datetime
    total_revenue: float
    teacher_payments: List[TeacherPayment]
    total_teacher_payments: float
    packages_sold: List[PackageSold]
    total_packages_sold: int
    expenses: List[ExpenseResponse]
    total_expenses: float
    total_costs: float
    profit_loss: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MonthlyFinanceResponse(StandardizedModel):
    year: int
    month: int
    total_revenue: float
    packages_sold: List[PackageSold]
    total_packages_sold: int
    revenue_by_type: Dict[str, float]
    sessions_completed: int
