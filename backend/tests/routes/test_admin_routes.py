from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.timezone_utils import studio_today, to_studio_time, utc_now
from tests.factories.studio_builders import make_booking

API = "/api/v1/admin"


@pytest.fixture
def current_period():
    today = studio_today()
    return today.year, today.month


class TestTeacherAdmin:
    def test_create_teacher(self, client, admin_headers):
        r = client.post(
            f"{API}/teachers",
            headers=admin_headers,
            json={
                "name": "Fah",
                "email": "fah@example.com",
                "password": "teacherpass1",
                "bio": "Reformer specialist",
                "specialties": ["reformer", "rehab"],
                "teacher_type": "studio",
            },
        )
        assert r.status_code == 201
        body = r.json()
        assert body["teacher_type"] == "studio"
        assert body["specialties"] == ["reformer", "rehab"]
        assert body["email"] == "fah@example.com"

        listed = client.get(f"{API}/teachers", headers=admin_headers)
        assert [t["name"] for t in listed.json()] == ["Fah"]

    def test_duplicate_teacher_email(self, client, admin_headers, teacher_user):
        r = client.post(
            f"{API}/teachers",
            headers=admin_headers,
            json={"name": "Ploy 2", "email": teacher_user.email, "password": "teacherpass1"},
        )
        assert r.status_code == 409

    def test_upcoming_session_count(self, db, client, admin_headers, teacher_user, customer_user):
        make_booking(
            db, customer_user.customer_profile, teacher_user.teacher_profile, utc_now() + timedelta(days=2)
        )
        r = client.get(f"{API}/teachers/{teacher_user.teacher_profile.id}", headers=admin_headers)
        assert r.status_code == 200
        listed = client.get(f"{API}/teachers", headers=admin_headers).json()
        assert listed[0]["upcoming_sessions_7d"] == 1

    def test_admin_routes_reject_other_roles(self, client, customer_headers, teacher_headers):
        assert client.get(f"{API}/teachers", headers=customer_headers).status_code == 403
        assert client.get(f"{API}/reports", headers=teacher_headers).status_code == 403


class TestReports:
    def test_generate_and_regenerate(
        self, db, client, admin_headers, teacher_user, customer_user, customer_package, current_period
    ):
        year, month = current_period
        make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(minutes=90),
            status="completed",
            package=customer_package,
        )

        r = client.post(f"{API}/reports", headers=admin_headers, json={"year": year, "month": month})
        assert r.status_code == 201
        report = r.json()
        assert report["total_revenue"] == 10000.0
        assert report["total_packages_sold"] == 1
        assert report["teacher_payments"][0]["sessions"]["private"] == {"count": 1, "commission": 400.0}
        assert report["total_teacher_payments"] == 400.0
        assert report["profit_loss"] == 9600.0

        again = client.post(f"{API}/reports", headers=admin_headers, json={"year": year, "month": month})
        assert again.json()["id"] == report["id"]

    def test_invalid_period(self, client, admin_headers):
        r = client.post(f"{API}/reports", headers=admin_headers, json={"year": 2025, "month": 13})
        assert r.status_code == 422

    def test_expenses_update_totals(self, client, admin_headers, current_period):
        year, month = current_period
        report = client.post(
            f"{API}/reports", headers=admin_headers, json={"year": year, "month": month}
        ).json()

        added = client.post(
            f"{API}/reports/{report['id']}/expenses",
            headers=admin_headers,
            json={"category": "Rent", "amount": "15000", "description": "Studio rent"},
        )
        assert added.status_code == 201
        assert added.json()["total_expenses"] == 15000.0
        assert added.json()["profit_loss"] == -15000.0
        expense_id = added.json()["expenses"][0]["id"]

        updated = client.patch(
            f"{API}/reports/{report['id']}/expenses/{expense_id}",
            headers=admin_headers,
            json={"amount": 12000},
        )
        assert updated.json()["total_expenses"] == 12000.0

        listed = client.get(f"{API}/reports/{report['id']}/expenses", headers=admin_headers)
        assert [e["category"] for e in listed.json()] == ["Rent"]

        deleted = client.delete(
            f"{API}/reports/{report['id']}/expenses/{expense_id}", headers=admin_headers
        )
        assert deleted.status_code == 200
        assert deleted.json()["total_expenses"] == 0.0

    def test_non_positive_expense(self, client, admin_headers, current_period):
        year, month = current_period
        report = client.post(
            f"{API}/reports", headers=admin_headers, json={"year": year, "month": month}
        ).json()
        r = client.post(
            f"{API}/reports/{report['id']}/expenses",
            headers=admin_headers,
            json={"category": "Rent", "amount": 0},
        )
        assert r.status_code == 400

    def test_list_and_delete(self, client, admin_headers, current_period):
        year, month = current_period
        report = client.post(
            f"{API}/reports", headers=admin_headers, json={"year": year, "month": month}
        ).json()
        assert len(client.get(f"{API}/reports", headers=admin_headers).json()) == 1

        assert client.delete(f"{API}/reports/{report['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"{API}/reports/{report['id']}", headers=admin_headers).status_code == 404


def test_monthly_finance(client, admin_headers, customer_package, current_period):
    year, month = current_period
    r = client.get(f"{API}/finance", headers=admin_headers, params={"year": year, "month": month})
    assert r.status_code == 200
    body = r.json()
    assert body["total_revenue"] == 10000.0
    assert body["revenue_by_type"] == {"private": 10000.0}
    assert body["sessions_completed"] == 0


class TestAnalytics:
    def test_dashboard(self, db, client, admin_headers, teacher_user, customer_user, customer_package):
        make_booking(
            db, customer_user.customer_profile, teacher_user.teacher_profile, utc_now() + timedelta(days=2)
        )
        r = client.get(f"{API}/analytics", headers=admin_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["overview"]["total_customers"] == 1
        assert body["overview"]["upcoming_sessions"] == 1
        assert body["overview"]["active_packages"] == 1
        assert body["this_month"]["packages_sold"] == 1
        assert body["this_month"]["revenue"] == 10000.0

    def test_customers_sessions(self, db, client, admin_headers, teacher_user, customer_user, customer_package):
        make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(days=3),
            status="completed",
            package=customer_package,
        )
        r = client.get(f"{API}/customers-sessions", headers=admin_headers)
        assert r.status_code == 200
        [entry] = r.json()["customers"]
        assert entry["customer"]["name"] == "Mali Customer"
        assert entry["completed_sessions"] == 1
        assert entry["packages"][0]["id"] == customer_package.id
        assert entry["analytics"]["total_money_spent"] == 10000.0

    def test_teacher_performance(self, db, client, admin_headers, teacher_user, customer_user):
        start = utc_now() + timedelta(days=1)
        make_booking(db, customer_user.customer_profile, teacher_user.teacher_profile, start)
        local_day = to_studio_time(start).date()
        day, earlier = local_day.isoformat(), (local_day - timedelta(days=2)).isoformat()
        teacher_id = teacher_user.teacher_profile.id

        r = client.get(
            f"{API}/teacher-performance/{teacher_id}",
            headers=admin_headers,
            params={"from": earlier, "to": day},
        )
        assert r.status_code == 200
        assert r.json()["stats"]["upcoming_sessions"] == 1

        everyone = client.get(
            f"{API}/teacher-performance",
            headers=admin_headers,
            params={"from": earlier, "to": day},
        )
        assert everyone.json()["stats"]["total_sessions"] == 1

        missing = client.get(f"{API}/teacher-performance/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=admin_headers)
        assert missing.status_code == 404
        backwards = client.get(
            f"{API}/teacher-performance",
            headers=admin_headers,
            params={"from": day, "to": earlier},
        )
        assert backwards.status_code == 400

    def test_trends(self, client, admin_headers, teacher_user, customer_package):
        finance = client.get(f"{API}/finance-trends", headers=admin_headers, params={"months": 3})
        assert finance.status_code == 200
        assert len(finance.json()["trends"]) == 3
        assert finance.json()["trends"][-1]["packages_sold"] == 1
        assert finance.json()["period"] == "3 months"

        sessions = client.get(f"{API}/teacher-session-trends", headers=admin_headers)
        assert sessions.status_code == 200
        assert sessions.json()["teachers"] == ["Ploy"]
        assert len(sessions.json()["trends"]) == 6

        assert (
            client.get(f"{API}/finance-trends", headers=admin_headers, params={"months": 0}).status_code
            == 422
        )

    def test_package_distribution(self, client, admin_headers, customer_package):
        r = client.get(f"{API}/package-distribution", headers=admin_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 1
        assert body["by_session_and_type"]["10"]["private"]["count"] == 1
        assert body["most_popular"]["type"]["type"] == "private"

    def test_customer_demographics(self, client, admin_headers, customer_user):
        r = client.get(f"{API}/customer-demographics", headers=admin_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["total_customers"] == 1
        assert {"gender": "unknown", "count": 1} in body["gender_distribution"]

    def test_analytics_is_admin_only(self, client, teacher_headers):
        for path in ("analytics", "customers-sessions", "customer-demographics", "package-distribution"):
            assert client.get(f"{API}/{path}", headers=teacher_headers).status_code == 403
