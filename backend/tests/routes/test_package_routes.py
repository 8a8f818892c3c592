from __future__ import annotations

from app.models.payment import Payment
from tests.factories.studio_builders import make_package

API = "/api/v1/packages"


class TestPackages:
    def test_admin_sells_package_with_payment(self, db, client, admin_headers, customer_user):
        r = client.post(
            API,
            headers=admin_headers,
            json={
                "customer_id": customer_user.customer_profile.id,
                "name": "10 Session Package",
                "type": "private",
                "total_sessions": 10,
                "price": "12000",
                "payment": {"method": "bank_transfer"},
            },
        )
        assert r.status_code == 201
        body = r.json()
        assert body["remaining_sessions"] == 10
        assert body["price"] == 12000.0
        assert body["status"] == "active"
        assert body["remaining_unbooked"] == 10

        payments = db.query(Payment).filter_by(package_id=body["id"]).all()
        assert len(payments) == 1
        assert payments[0].method == "bank_transfer"

    def test_customer_cannot_sell(self, client, customer_headers, customer_user):
        r = client.post(
            API,
            headers=customer_headers,
            json={
                "customer_id": customer_user.customer_profile.id,
                "name": "Free",
                "type": "private",
                "total_sessions": 10,
            },
        )
        assert r.status_code == 403

    def test_negative_price_is_rejected(self, client, admin_headers, customer_user):
        r = client.post(
            API,
            headers=admin_headers,
            json={
                "customer_id": customer_user.customer_profile.id,
                "name": "Odd",
                "type": "private",
                "total_sessions": 10,
                "price": -1,
            },
        )
        assert r.status_code == 422

    def test_my_packages(self, client, customer_headers, customer_package):
        r = client.get(f"{API}/me", headers=customer_headers)
        assert r.status_code == 200
        packages = r.json()["packages"]
        assert [p["id"] for p in packages] == [customer_package.id]
        assert packages[0]["completed_count"] == 0

    def test_other_customer_cannot_view(self, db, client, customer_headers, other_customer_user):
        package = make_package(db, other_customer_user.customer_profile)
        r = client.get(f"{API}/{package.id}", headers=customer_headers)
        assert r.status_code == 403

    def test_remaining_change_requires_reason(self, client, admin_headers, customer_package):
        r = client.patch(
            f"{API}/{customer_package.id}", headers=admin_headers, json={"remaining_sessions": 8}
        )
        assert r.status_code == 400

        r = client.patch(
            f"{API}/{customer_package.id}",
            headers=admin_headers,
            json={"remaining_sessions": 8, "reason": "Two sessions taken before migration"},
        )
        assert r.status_code == 200
        assert r.json()["remaining_sessions"] == 8

    def test_delete_unused_package(self, client, admin_headers, customer_package):
        r = client.delete(f"{API}/{customer_package.id}", headers=admin_headers)
        assert r.status_code == 204
        assert client.get(f"{API}/{customer_package.id}", headers=admin_headers).status_code == 404


class TestPackageRequests:
    def test_request_then_approve(self, db, client, customer_headers, admin_headers, customer_user):
        created = client.post(
            f"{API}/requests",
            headers=customer_headers,
            json={"package_type": "duo", "sessions": 5, "notes": "With my sister"},
        )
        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status"] == "pending"
        assert created.json()["customer_name"] == "Mali Customer"

        pending = client.get(f"{API}/requests/pending", headers=admin_headers)
        assert [r["id"] for r in pending.json()] == [request_id]

        approved = client.post(
            f"{API}/requests/{request_id}/approve",
            headers=admin_headers,
            json={"package_type": "duo", "sessions": 5, "price": 9000},
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["package_id"]

        mine = client.get(f"{API}/me", headers=customer_headers).json()["packages"]
        assert [p["type"] for p in mine] == ["duo"]

    def test_reject_uses_default_reason(self, client, customer_headers, admin_headers):
        request_id = client.post(
            f"{API}/requests", headers=customer_headers, json={"package_type": "private", "sessions": 10}
        ).json()["id"]

        r = client.post(f"{API}/requests/{request_id}/reject", headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["status"] == "rejected"
        assert r.json()["rejection_reason"]

        again = client.post(f"{API}/requests/{request_id}/reject", headers=admin_headers)
        assert again.status_code == 400

    def test_group_sessions_cannot_be_requested_as_block(self, client, customer_headers):
        r = client.post(
            f"{API}/requests", headers=customer_headers, json={"package_type": "blocked", "sessions": 1}
        )
        assert r.status_code == 422
