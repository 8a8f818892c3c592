# backend/app/services/analytics_service.py
"""
Admin dashboard analytics.

Read-only aggregates over bookings, packages and customers. Month buckets
follow the studio calendar (see ``report_service.date_range``) and revenue
is the price of packages created in the bucket.
"""

from collections import Counter
from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import ReportType, SessionType
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import add_months, studio_day_bounds, to_studio_time, utc_now
from ..models.booking import Booking, BookingStatus
from ..models.customer import Customer
from ..models.package import Package
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .customer_service import customer_dict
from .report_service import date_range

logger = logging.getLogger(__name__)

TOP_CUSTOMERS_LIMIT = 10
UPCOMING_WINDOW_DAYS = 7

AGE_RANGES: Tuple[Tuple[str, int, Optional[int]], ...] = (
    ("0-17", 0, 17),
    ("18-24", 18, 24),
    ("25-34", 25, 34),
    ("35-44", 35, 44),
    ("45-54", 45, 54),
    ("55-64", 55, 64),
    ("65+", 65, None),
)
GENDERS = ("male", "female", "other")
PROFESSIONS = ("Student", "Employed", "Retired", "Homemaker")
PROFESSION_UNSPECIFIED = "Not specified"

_MONTHLY = ReportType.MONTHLY.value
_ATTENDED = (BookingStatus.COMPLETED.value, BookingStatus.NO_SHOW.value)


def _average_gap_days(moments: Iterable[datetime]) -> float:
    ordered = sorted(moments)
    if len(ordered) < 2:
        return 0.0
    span = (ordered[-1] - ordered[0]).total_seconds() / 86400
    return round(span / (len(ordered) - 1), 1)


def _age(born: date, today: date) -> int:
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def _age_range(age: int) -> str:
    for label, low, high in AGE_RANGES:
        if age >= low and (high is None or age <= high):
            return label
    return AGE_RANGES[0][0]


def _profession_bucket(profession: Optional[str]) -> str:
    value = (profession or "").strip().lower()
    for bucket in PROFESSIONS:
        if value == bucket.lower():
            return bucket
    return PROFESSION_UNSPECIFIED


def _is_completed(booking: Booking, now: datetime) -> bool:
    """Attended, no-show, or confirmed and already over."""
    if booking.status in _ATTENDED:
        return True
    return booking.status == BookingStatus.CONFIRMED.value and booking.end_time < now


def _is_upcoming(booking: Booking, now: datetime) -> bool:
    return (
        booking.status in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
        and booking.start_time >= now
    )


def _revenue(packages: Iterable[Package]) -> float:
    return float(sum(float(p.price or 0) for p in packages))


class AnalyticsService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    def _month_periods(self, months: int, now: datetime) -> List[Tuple[date, datetime, datetime]]:
        """First day and UTC bounds of the last ``months`` studio months, oldest first."""
        if months < 1:
            raise ValidationException("months must be at least 1")
        current = to_studio_time(now).date().replace(day=1)
        periods = []
        for back in range(months - 1, -1, -1):
            first = add_months(current, -back)
            start, end = date_range(first.year, first.month, _MONTHLY)
            periods.append((first, start, end))
        return periods

    def _completed_between(
        self, start: datetime, end: datetime, teacher_id: Optional[str] = None
    ) -> List[Booking]:
        return self.booking_repository.list_with_statuses(
            [BookingStatus.COMPLETED.value], start, end, teacher_id
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    @BaseService.measure_operation("analytics_dashboard")
    def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utc_now()
        today = to_studio_time(now).date()
        start, end = date_range(today.year, today.month, _MONTHLY)

        packages = self.package_repository.list_created_between(start, end)
        completed = self._completed_between(start, end)
        booked = self.booking_repository.list_with_statuses(
            [BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value], start, end
        )
        upcoming = self.booking_repository.list_with_statuses(
            [BookingStatus.CONFIRMED.value], now, now + timedelta(days=UPCOMING_WINDOW_DAYS)
        )
        sessions_sold = sum(p.total_sessions for p in packages)

        per_teacher = Counter(b.teacher_id for b in completed if b.teacher_id)
        teachers = {b.teacher_id: b.teacher for b in completed if b.teacher_id}
        per_customer = Counter(b.customer_id for b in booked if b.customer_id)
        customers = {b.customer_id: b.customer for b in booked if b.customer_id}

        return {
            "overview": {
                "total_customers": self.customer_repository.count(),
                "total_teachers": self.teacher_repository.count(),
                "total_bookings": self.booking_repository.count_sessions(),
                "pending_bookings": self.booking_repository.count_sessions(
                    BookingStatus.PENDING.value
                ),
                "upcoming_sessions": len(upcoming),
                "active_packages": len(self.package_repository.list_usable(now)),
            },
            "this_month": {
                "packages_sold": len(packages),
                "total_sessions_sold": sessions_sold,
                "sessions_completed": len(completed),
                "revenue": _revenue(packages),
                "remaining_sessions": sessions_sold - len(completed),
            },
            "teachers": [
                {
                    "teacher_id": teacher_id,
                    "teacher_name": teachers[teacher_id].name,
                    "sessions_count": count,
                }
                for teacher_id, count in per_teacher.most_common()
            ],
            "top_customers": [
                {
                    "customer_id": customer_id,
                    "customer_name": customers[customer_id].name,
                    "customer_email": (
                        customers[customer_id].user.email if customers[customer_id].user else None
                    ),
                    "sessions_count": count,
                }
                for customer_id, count in per_customer.most_common(TOP_CUSTOMERS_LIMIT)
            ],
        }

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def _customer_history(self, customer: Customer, now: datetime) -> Dict[str, Any]:
        sessions = self.booking_repository.list_for_customer(customer.id)
        packages = self.package_repository.list_for_customer(customer.id)
        completed = [b for b in sessions if _is_completed(b, now)]
        popular = Counter(p.type for p in packages if p.type)

        return {
            "customer": customer_dict(customer),
            "sessions": [b.to_dict() for b in sessions],
            "packages": [p.to_dict() for p in packages],
            "total_sessions": len(sessions),
            "completed_sessions": len(completed),
            "upcoming_sessions": sum(1 for b in sessions if _is_upcoming(b, now)),
            "analytics": {
                "total_packages_purchased": len(packages),
                "total_money_spent": _revenue(packages),
                "avg_days_between_sessions": _average_gap_days(b.start_time for b in completed),
                "avg_days_between_packages": _average_gap_days(p.created_at for p in packages),
                "popular_packages": [
                    {"type": kind, "count": count} for kind, count in popular.most_common()
                ],
            },
        }

    @BaseService.measure_operation("analytics_customers_with_sessions")
    def customers_with_sessions(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or utc_now()
        return [
            self._customer_history(customer, now)
            for customer in self.customer_repository.list_with_users()
        ]

    @BaseService.measure_operation("analytics_customer_demographics")
    def customer_demographics(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or to_studio_time(utc_now()).date()
        customers = self.customer_repository.list_with_users()

        ages: Counter = Counter()
        genders: Counter = Counter()
        professions: Counter = Counter()
        for customer in customers:
            if customer.date_of_birth:
                ages[_age_range(_age(customer.date_of_birth, today))] += 1
            else:
                ages["Unknown"] += 1
            genders[customer.gender if customer.gender in GENDERS else "unknown"] += 1
            professions[_profession_bucket(customer.profession)] += 1

        age_labels = [label for label, _, _ in AGE_RANGES] + ["Unknown"]
        profession_labels = list(PROFESSIONS) + [PROFESSION_UNSPECIFIED]
        return {
            "total_customers": len(customers),
            "age_distribution": [
                {"age_range": label, "count": ages[label]} for label in age_labels
            ],
            "gender_distribution": [
                {"gender": label, "count": genders[label]} for label in GENDERS + ("unknown",)
            ],
            "profession_distribution": sorted(
                (
                    {"profession": label, "count": professions[label]}
                    for label in profession_labels
                    if professions[label] > 0
                ),
                key=lambda item: -item["count"],
            ),
        }

    # ------------------------------------------------------------------
    # Teachers
    # ------------------------------------------------------------------

    @BaseService.measure_operation("analytics_teacher_performance")
    def teacher_performance(
        self,
        teacher_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Sessions of one teacher (or all teachers) in a studio-local date range.

        The range defaults to the current month; ``end_date`` is inclusive.
        """
        now = now or utc_now()
        if teacher_id and self.teacher_repository.get_by_id(teacher_id) is None:
            raise NotFoundException("Teacher not found")

        today = to_studio_time(now).date()
        month_start, month_end = date_range(today.year, today.month, _MONTHLY)
        start = studio_day_bounds(start_date)[0] if start_date else month_start
        end = studio_day_bounds(end_date)[1] - timedelta(microseconds=1) if end_date else month_end
        if start > end:
            raise ValidationException("from must not be after to")

        sessions = self.booking_repository.list_with_statuses(
            [
                BookingStatus.CONFIRMED.value,
                BookingStatus.COMPLETED.value,
                BookingStatus.NO_SHOW.value,
            ],
            start,
            end,
            teacher_id,
        )
        return {
            "start": start,
            "end": end,
            "sessions": [b.to_dict() for b in sessions],
            "stats": {
                "total_sessions": len(sessions),
                "completed_sessions": sum(
                    1 for b in sessions if b.status == BookingStatus.COMPLETED.value
                ),
                "no_show_sessions": sum(
                    1 for b in sessions if b.status == BookingStatus.NO_SHOW.value
                ),
                "upcoming_sessions": sum(
                    1
                    for b in sessions
                    if b.status == BookingStatus.CONFIRMED.value and b.start_time > now
                ),
            },
        }

    @BaseService.measure_operation("analytics_teacher_session_trends")
    def teacher_session_trends(
        self, months: int = 6, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Completed sessions per teacher per month, keyed by teacher name."""
        now = now or utc_now()
        teachers = self.teacher_repository.list_all()
        trends = []
        for first, start, end in self._month_periods(months, now):
            counts = Counter(b.teacher_id for b in self._completed_between(start, end))
            trends.append(
                {
                    "month": first.strftime("%b"),
                    "year": first.year,
                    "month_year": first.strftime("%b %Y"),
                    "sessions": {t.name: counts.get(t.id, 0) for t in teachers},
                }
            )
        return {
            "trends": trends,
            "teachers": [t.name for t in teachers],
            "period": f"{months} months",
        }

    # ------------------------------------------------------------------
    # Finance and packages
    # ------------------------------------------------------------------

    @BaseService.measure_operation("analytics_finance_trends")
    def finance_trends(self, months: int = 6, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utc_now()
        trends = []
        for first, start, end in self._month_periods(months, now):
            packages = self.package_repository.list_created_between(start, end)
            trends.append(
                {
                    "month": first.strftime("%b"),
                    "year": first.year,
                    "month_year": first.strftime("%b %Y"),
                    "packages_sold": len(packages),
                    "sessions_sold": sum(p.total_sessions for p in packages),
                    "sessions_taken": len(self._completed_between(start, end)),
                    "revenue": _revenue(packages),
                }
            )
        return {"trends": trends, "period": f"{months} months"}

    @BaseService.measure_operation("analytics_package_distribution")
    def package_distribution(self) -> Dict[str, Any]:
        packages = self.package_repository.list_all()
        kinds = [kind.value for kind in SessionType.bookable()]

        by_count: Dict[int, Dict[str, Any]] = {}
        by_type: Dict[str, Dict[str, Any]] = {}
        grid: Dict[int, Dict[str, Dict[str, Any]]] = {}
        for package in packages:
            price = float(package.price or 0)
            count_bucket = by_count.setdefault(
                package.total_sessions,
                {"sessions": package.total_sessions, "count": 0, "revenue": 0.0},
            )
            type_bucket = by_type.setdefault(
                package.type, {"type": package.type, "count": 0, "revenue": 0.0}
            )
            cells = grid.setdefault(
                package.total_sessions, {kind: {"count": 0, "revenue": 0.0} for kind in kinds}
            )
            cell = cells.setdefault(package.type, {"count": 0, "revenue": 0.0})
            for bucket in (count_bucket, type_bucket, cell):
                bucket["count"] += 1
                bucket["revenue"] += price

        session_buckets = [by_count[key] for key in sorted(by_count)]
        type_buckets = sorted(by_type.values(), key=lambda b: (-b["count"], b["type"]))
        return {
            "by_session_count": session_buckets,
            "by_type": type_buckets,
            "by_session_and_type": {key: grid[key] for key in sorted(grid)},
            "most_popular": {
                "session_count": max(session_buckets, key=lambda b: b["count"], default=None),
                "type": type_buckets[0] if type_buckets else None,
            },
            "total": len(packages),
        }
