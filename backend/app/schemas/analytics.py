"""Admin dashboard analytics schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from .base import StandardizedModel
from .booking import BookingResponse
from .customer import CustomerResponse
from .package import PackageResponse


class DashboardOverview(StandardizedModel):
    total_customers: int
    total_teachers: int
    total_bookings: int
    pending_bookings: int
    upcoming_sessions: int
    active_packages: int


class DashboardMonth(StandardizedModel):
    packages_sold: int
    total_sessions_sold: int
    sessions_completed: int
    revenue: float
    remaining_sessions: int


class TeacherSessionCount(StandardizedModel):
    teacher_id: str
    teacher_name: str
    sessions_count: int


class TopCustomer(StandardizedModel):
    customer_id: str
    customer_name: str
    customer_email: Optional[str] = None
    sessions_count: int


class DashboardAnalyticsResponse(StandardizedModel):
    overview: DashboardOverview
    this_month: DashboardMonth
    teachers: List[TeacherSessionCount]
    top_customers: List[TopCustomer]


class PackageTypeCount(StandardizedModel):
    type: str
    count: int


class CustomerAnalytics(StandardizedModel):
    total_packages_purchased: int
    total_money_spent: float
    avg_days_between_sessions: float
    avg_days_between_packages: float
    popular_packages: List[PackageTypeCount]


class CustomerWithSessions(StandardizedModel):
    customer: CustomerResponse
    sessions: List[BookingResponse]
    packages: List[PackageResponse]
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    analytics: CustomerAnalytics


class CustomersWithSessionsResponse(StandardizedModel):
    customers: List[CustomerWithSessions]


class TeacherPerformanceStats(StandardizedModel):
    total_sessions: int
    completed_sessions: int
    no_show_sessions: int
    upcoming_sessions: int


class TeacherPerformanceResponse(StandardizedModel):
    start: datetime
    end: datetime
    sessions: List[BookingResponse]
    stats: TeacherPerformanceStats


class FinanceTrendPoint(StandardizedModel):
    month: str
    year: int
    month_year: str
    packages_sold: int
    sessions_sold: int
    sessions_taken: int
    revenue: float


class FinanceTrendsResponse(StandardizedModel):
    trends: List[FinanceTrendPoint]
    period: str


class TeacherTrendPoint(StandardizedModel):
    month: str
    year: int
    month_year: str
    sessions: Dict[str, int]


class TeacherSessionTrendsResponse(StandardizedModel):
    trends: List[TeacherTrendPoint]
    teachers: List[str]
    period: str


class DistributionBucket(StandardizedModel):
    count: int = 0
    revenue: float = 0.0


class SessionCountBucket(DistributionBucket):
    sessions: int


class PackageTypeBucket(DistributionBucket):
    type: str


class MostPopularPackage(StandardizedModel):
    session_count: Optional[SessionCountBucket] = None
    type: Optional[PackageTypeBucket] = None


class PackageDistributionResponse(StandardizedModel):
    by_session_count: List[SessionCountBucket]
    by_type: List[PackageTypeBucket]
    by_session_and_type: Dict[int, Dict[str, DistributionBucket]] = Field(default_factory=dict)
    most_popular: MostPopularPackage
    total: int


class AgeRangeCount(StandardizedModel):
    age_range: str
    count: int


class GenderCount(StandardizedModel):
    gender: str
    count: int


class ProfessionCount(StandardizedModel):
    profession: str
    count: int


class CustomerDemographicsResponse(StandardizedModel):
    total_customers: int
    age_distribution: List[AgeRangeCount]
    gender_distribution: List[GenderCount]
    profession_distribution: List[ProfessionCount]
