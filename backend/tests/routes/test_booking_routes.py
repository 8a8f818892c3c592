from __future__ import annotations

from datetime import datetime, timedelta

from app.core.timezone_utils import to_studio_time, utc_now
from tests.factories.studio_builders import auth_headers_for, future_slot, make_booking

API = "/api/v1/bookings"


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _request(client, headers, package, teacher, start):
    return client.post(
        API,
        headers=headers,
        json={
            "package_id": package.id,
            "start_time": start.isoformat(),
            "teacher_id": teacher.teacher_profile.id,
        },
    )


class TestBookingRequests:
    def test_request_confirm_and_list(
        self, client, customer_headers, teacher_headers, customer_package, teacher_user
    ):
        created = _request(client, customer_headers, customer_package, teacher_user, future_slot())
        assert created.status_code == 201
        booking = created.json()
        assert booking["status"] == "pending"
        assert booking["is_requested_by_customer"] is True
        assert booking["teacher_name"] == "Ploy"

        confirmed = client.post(f"{API}/{booking['id']}/confirm", headers=teacher_headers)
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

        mine = client.get(f"{API}/me", headers=customer_headers)
        assert mine.status_code == 200
        assert mine.json()["total"] == 1
        assert mine.json()["bookings"][0]["id"] == booking["id"]

    def test_short_notice_is_rejected(
        self, client, customer_headers, customer_package, teacher_user
    ):
        start = utc_now() + timedelta(hours=2)
        r = _request(client, customer_headers, customer_package, teacher_user, start)
        assert r.status_code == 400
        body = r.json()
        assert body["code"] == "INSUFFICIENT_NOTICE"
        assert body["errors"]["required_hours"] == 24

    def test_conflict_reports_booking_conflict(
        self, db, client, customer_headers, customer_package, customer_user, teacher_user
    ):
        start = future_slot()
        make_booking(db, customer_user.customer_profile, teacher_user.teacher_profile, start)
        r = _request(client, customer_headers, customer_package, teacher_user, start)
        assert r.status_code == 409
        assert r.json()["code"] == "BOOKING_CONFLICT"

    def test_teacher_cannot_use_customer_endpoint(self, client, teacher_headers):
        r = client.get(f"{API}/me", headers=teacher_headers)
        assert r.status_code == 403

    def test_reject_pending_request(
        self, client, customer_headers, teacher_headers, customer_package, teacher_user
    ):
        booking = _request(
            client, customer_headers, customer_package, teacher_user, future_slot()
        ).json()
        r = client.post(
            f"{API}/{booking['id']}/reject", headers=teacher_headers, json={"reason": "Fully booked"}
        )
        assert r.status_code == 200
        assert r.json()["status"] == "cancelled"
        assert r.json()["cancellation_reason"] == "Fully booked"


class TestAdminViews:
    def test_pending_requires_admin(self, client, customer_headers):
        r = client.get(f"{API}/pending", headers=customer_headers)
        assert r.status_code == 403
        assert r.json()["detail"] == "Admin access required"

    def test_pending_and_filtered_list(
        self, client, admin_headers, customer_headers, customer_package, teacher_user
    ):
        _request(client, customer_headers, customer_package, teacher_user, future_slot())

        pending = client.get(f"{API}/pending", headers=admin_headers)
        assert pending.status_code == 200
        assert pending.json()["total"] == 1

        confirmed = client.get(API, headers=admin_headers, params={"status": "confirmed"})
        assert confirmed.status_code == 200
        assert confirmed.json()["total"] == 0


class TestCancellationFlow:
    def test_free_cancellation(
        self, db, client, customer_headers, customer_user, teacher_user, customer_package
    ):
        booking = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() + timedelta(hours=48),
            package=customer_package,
        )
        r = client.post(f"{API}/{booking.id}/cancel", headers=customer_headers, json={"reason": "Sick"})
        assert r.status_code == 200
        assert r.json()["requires_approval"] is False
        assert r.json()["booking"]["status"] == "cancelled"

    def test_late_cancellation_needs_approval(
        self, db, client, customer_headers, teacher_headers, customer_user, teacher_user, customer_package
    ):
        booking = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() + timedelta(hours=8),
            package=customer_package,
        )
        r = client.post(f"{API}/{booking.id}/cancel", headers=customer_headers)
        assert r.status_code == 200
        assert r.json()["requires_approval"] is True
        assert r.json()["booking"]["status"] == "cancellationRequested"

        approved = client.post(f"{API}/{booking.id}/cancellation/approve", headers=teacher_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "cancelled"

    def test_window_closed(self, db, client, customer_headers, customer_user, teacher_user, customer_package):
        booking = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() + timedelta(hours=3),
            package=customer_package,
        )
        r = client.post(f"{API}/{booking.id}/cancel", headers=customer_headers)
        assert r.status_code == 422
        assert r.json()["code"] == "CANCELLATION_WINDOW_CLOSED"

    def test_other_customer_cannot_cancel(
        self, db, client, customer_user, other_customer_user, teacher_user, customer_package
    ):
        booking = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() + timedelta(hours=48),
            package=customer_package,
        )
        r = client.post(f"{API}/{booking.id}/cancel", headers=auth_headers_for(other_customer_user))
        assert r.status_code == 403


class TestAttendanceAndManual:
    def test_mark_completed(
        self, db, client, teacher_headers, customer_user, teacher_user, customer_package
    ):
        booking = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(hours=2),
            package=customer_package,
        )
        r = client.patch(
            f"{API}/{booking.id}/attendance", headers=teacher_headers, json={"status": "completed"}
        )
        assert r.status_code == 200
        assert r.json()["status"] == "completed"
        assert r.json()["package_deducted"] is True

    def test_invalid_attendance_status(self, db, client, teacher_headers, customer_user, teacher_user):
        booking = make_booking(
            db, customer_user.customer_profile, teacher_user.teacher_profile, utc_now() - timedelta(hours=2)
        )
        r = client.patch(
            f"{API}/{booking.id}/attendance", headers=teacher_headers, json={"status": "late"}
        )
        assert r.status_code == 422

    def test_manual_session_is_confirmed_and_deducted(
        self, client, teacher_headers, customer_user, customer_package
    ):
        r = client.post(
            f"{API}/manual",
            headers=teacher_headers,
            json={
                "customer_id": customer_user.customer_profile.id,
                "package_id": customer_package.id,
                "start_time": future_slot(days=2, hour=9).isoformat(),
            },
        )
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == "confirmed"
        assert body["package_deducted"] is True
        assert to_studio_time(_parse(body["start_time"])).hour == 9

    def test_manual_session_requires_teacher(self, client, customer_headers, customer_user, customer_package):
        r = client.post(
            f"{API}/manual",
            headers=customer_headers,
            json={
                "customer_id": customer_user.customer_profile.id,
                "package_id": customer_package.id,
                "start_time": future_slot().isoformat(),
            },
        )
        assert r.status_code == 403


class TestAvailabilityRoutes:
    def test_calendar(self, client, teacher_user):
        day = to_studio_time(future_slot(days=3)).date()
        r = client.get(
            f"{API}/availability",
            params={
                "from_date": day.isoformat(),
                "to_date": day.isoformat(),
                "teacher_id": teacher_user.teacher_profile.id,
            },
        )
        assert r.status_code == 200
        body = r.json()
        assert body["teacher_id"] == teacher_user.teacher_profile.id
        assert len(body["days"]) == 1
        assert len(body["days"][0]["slots"]) == 15

    def test_reversed_range(self, client):
        r = client.get(
            f"{API}/availability", params={"from_date": "2030-01-10", "to_date": "2030-01-01"}
        )
        assert r.status_code == 400

    def test_block_lifecycle(self, client, teacher_headers, teacher_user):
        start = future_slot(days=5, hour=13)
        created = client.post(
            f"{API}/blocks",
            headers=teacher_headers,
            json={
                "start_time": start.isoformat(),
                "end_time": (start + timedelta(hours=1)).isoformat(),
                "reason": "Workshop",
            },
        )
        assert created.status_code == 201
        body = created.json()
        assert body["conflicts"] == []
        block_id = body["blocks"][0]["id"]
        assert body["blocks"][0]["teacher_id"] == teacher_user.teacher_profile.id

        listed = client.get(f"{API}/blocks", headers=teacher_headers)
        assert [b["id"] for b in listed.json()] == [block_id]

        deleted = client.delete(f"{API}/blocks/{block_id}", headers=teacher_headers)
        assert deleted.status_code == 204
        assert client.get(f"{API}/blocks", headers=teacher_headers).json() == []

    def test_block_end_before_start(self, client, teacher_headers):
        start = future_slot(days=5, hour=13)
        r = client.post(
            f"{API}/blocks",
            headers=teacher_headers,
            json={"start_time": start.isoformat(), "end_time": start.isoformat()},
        )
        assert r.status_code == 422

    def test_customers_cannot_block(self, client, customer_headers):
        start = future_slot(days=5, hour=13)
        r = client.post(
            f"{API}/blocks",
            headers=customer_headers,
            json={
                "start_time": start.isoformat(),
                "end_time": (start + timedelta(hours=1)).isoformat(),
            },
        )
        assert r.status_code == 403
