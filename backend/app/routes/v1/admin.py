# backend/app/routes/v1/admin.py
"""
Admin routes - API v1

Teacher accounts, financial reports, report expenses, the finance
dashboard and studio analytics. Every endpoint requires the admin role.

Endpoints:
    POST /teachers                                   - Create a teacher account
    GET /teachers                                    - Teachers with details
    GET /teachers/{teacher_id}                       - One teacher
    POST /reports                                    - Generate (or regenerate) a report
    GET /reports                                     - List reports
    GET /reports/{report_id}                         - Report detail
    DELETE /reports/{report_id}                      - Delete a report and its expenses
    GET /reports/{report_id}/expenses                - List expenses
    POST /reports/{report_id}/expenses               - Add an expense
    PATCH /reports/{report_id}/expenses/{expense_id} - Update an expense
    DELETE /reports/{report_id}/expenses/{expense_id} - Delete an expense
    GET /finance                                     - Monthly finance summary
    GET /analytics                                   - Dashboard counts for this month
    GET /customers-sessions                          - Customers with session history
    GET /teacher-performance/{teacher_id}            - Sessions in a date range
    GET /finance-trends                              - Monthly sales and sessions taken
    GET /package-distribution                        - Packages by size and type
    GET /teacher-session-trends                      - Monthly sessions per teacher
    GET /customer-demographics                       - Age, gender and profession mix
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import require_admin
from ...api.dependencies.services import (
    get_analytics_service,
    get_auth_service,
    get_report_service,
    get_teacher_service,
)
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.analytics import (
    CustomerDemographicsResponse,
    CustomersWithSessionsResponse,
    DashboardAnalyticsResponse,
    FinanceTrendsResponse,
    PackageDistributionResponse,
    TeacherPerformanceResponse,
    TeacherSessionTrendsResponse,
)
from ...schemas.report import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate,
    MonthlyFinanceResponse,
    ReportGenerate,
    ReportResponse,
)
from ...schemas.teacher import TeacherCreate, TeacherDetail
from ...services.analytics_service import AnalyticsService
from ...services.auth_service import AuthService
from ...services.report_service import ReportService
from ...services.teacher_service import TeacherService, teacher_detail_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-v1"], dependencies=[Depends(require_admin)])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _report_response(report) -> ReportResponse:
    return ReportResponse.model_validate(report.to_dict())


# ============================================================================
# Teachers
# ============================================================================


@router.post("/teachers", response_model=TeacherDetail, status_code=status.HTTP_201_CREATED)
async def create_teacher(
    payload: TeacherCreate,
    auth_service: AuthService = Depends(get_auth_service),
) -> TeacherDetail:
    try:
        teacher = await asyncio.to_thread(
            auth_service.create_teacher,
            payload.name,
            payload.email,
            payload.password,
            phone=payload.phone,
            bio=payload.bio,
            specialties=payload.specialties,
            years_of_experience=payload.years_of_experience,
            teacher_type=payload.teacher_type,
        )
        return TeacherDetail.model_validate(teacher_detail_dict(teacher))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/teachers", response_model=List[TeacherDetail])
async def list_teachers(
    include_inactive: bool = Query(True),
    teacher_service: TeacherService = Depends(get_teacher_service),
) -> List[TeacherDetail]:
    teachers = await asyncio.to_thread(
        teacher_service.list_teachers_with_details, include_inactive
    )
    return [TeacherDetail.model_validate(t) for t in teachers]


@router.get("/teachers/{teacher_id}", response_model=TeacherDetail)
async def get_teacher(
    teacher_id: str,
    teacher_service: TeacherService = Depends(get_teacher_service),
) -> TeacherDetail:
    try:
        teacher = await asyncio.to_thread(teacher_service.get_teacher, teacher_id)
        return TeacherDetail.model_validate(teacher)
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Reports
# ============================================================================


@router.post("/reports", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    payload: ReportGenerate,
    current_user: User = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    """Generate the report for a period; an existing one is recalculated in place."""
    try:
        report = await asyncio.to_thread(
            report_service.generate_report,
            payload.year,
            payload.month,
            payload.report_type,
            current_user,
        )
        return _report_response(report)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/reports", response_model=List[ReportResponse])
async def list_reports(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    report_type: Optional[str] = Query(None),
    report_service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    reports = await asyncio.to_thread(report_service.list_reports, year, report_type)
    return [_report_response(r) for r in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    try:
        report = await asyncio.to_thread(report_service.get_report, report_id)
        return _report_response(report)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    report_service: ReportService = Depends(get_report_service),
) -> Response:
    try:
        await asyncio.to_thread(report_service.delete_report, report_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Expenses
# ============================================================================


@router.get("/reports/{report_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    report_id: str,
    report_service: ReportService = Depends(get_report_service),
) -> List[ExpenseResponse]:
    try:
        expenses = await asyncio.to_thread(report_service.list_expenses, report_id)
        return [ExpenseResponse.model_validate(e.to_dict()) for e in expenses]
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post(
    "/reports/{report_id}/expenses",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_expense(
    report_id: str,
    payload: ExpenseCreate,
    current_user: User = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    try:
        report = await asyncio.to_thread(
            report_service.add_expense,
            report_id,
            payload.category,
            payload.amount,
            payload.description,
            current_user,
        )
        return _report_response(report)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/reports/{report_id}/expenses/{expense_id}", response_model=ReportResponse)
async def update_expense(
    report_id: str,
    expense_id: str,
    payload: ExpenseUpdate,
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    try:
        report = await asyncio.to_thread(
            report_service.update_expense,
            report_id,
            expense_id,
            payload.category,
            payload.amount,
            payload.description,
        )
        return _report_response(report)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/reports/{report_id}/expenses/{expense_id}", response_model=ReportResponse)
async def delete_expense(
    report_id: str,
    expense_id: str,
    report_service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    try:
        report = await asyncio.to_thread(report_service.delete_expense, report_id, expense_id)
        return _report_response(report)
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Finance
# ============================================================================


@router.get("/finance", response_model=MonthlyFinanceResponse)
async def monthly_finance(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    report_service: ReportService = Depends(get_report_service),
) -> MonthlyFinanceResponse:
    try:
        summary = await asyncio.to_thread(report_service.monthly_finance, year, month)
        return MonthlyFinanceResponse.model_validate(summary)
    except DomainException as exc:
        handle_domain_exception(exc)


# ============================================================================
# Analytics
# ============================================================================


@router.get("/analytics", response_model=DashboardAnalyticsResponse)
async def dashboard_analytics(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> DashboardAnalyticsResponse:
    summary = await asyncio.to_thread(analytics_service.dashboard)
    return DashboardAnalyticsResponse.model_validate(summary)


@router.get("/customers-sessions", response_model=CustomersWithSessionsResponse)
async def customers_with_sessions(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> CustomersWithSessionsResponse:
    customers = await asyncio.to_thread(analytics_service.customers_with_sessions)
    return CustomersWithSessionsResponse.model_validate({"customers": customers})


@router.get("/teacher-performance", response_model=TeacherPerformanceResponse)
@router.get("/teacher-performance/{teacher_id}", response_model=TeacherPerformanceResponse)
async def teacher_performance(
    teacher_id: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> TeacherPerformanceResponse:
    """Sessions in a studio-local date range; all teachers unless one is named."""
    try:
        performance = await asyncio.to_thread(
            analytics_service.teacher_performance, teacher_id, from_date, to_date
        )
        return TeacherPerformanceResponse.model_validate(performance)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/finance-trends", response_model=FinanceTrendsResponse)
async def finance_trends(
    months: int = Query(6, ge=1, le=24),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> FinanceTrendsResponse:
    trends = await asyncio.to_thread(analytics_service.finance_trends, months)
    return FinanceTrendsResponse.model_validate(trends)


@router.get("/package-distribution", response_model=PackageDistributionResponse)
async def package_distribution(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> PackageDistributionResponse:
    distribution = await asyncio.to_thread(analytics_service.package_distribution)
    return PackageDistributionResponse.model_validate(distribution)


@router.get("/teacher-session-trends", response_model=TeacherSessionTrendsResponse)
async def teacher_session_trends(
    months: int = Query(6, ge=1, le=24),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> TeacherSessionTrendsResponse:
    trends = await asyncio.to_thread(analytics_service.teacher_session_trends, months)
    return TeacherSessionTrendsResponse.model_validate(trends)


@router.get("/customer-demographics", response_model=CustomerDemographicsResponse)
async def customer_demographics(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> CustomerDemographicsResponse:
    demographics = await asyncio.to_thread(analytics_service.customer_demographics)
    return CustomerDemographicsResponse.model_validate(demographics)
