from __future__ import annotations

import pytest

from app.services.template_service import TemplateService

API = "/api/v1/notifications"


@pytest.fixture
def two_notifications(notification_service, customer_user):
    notification_service.notify(customer_user.id, "booking_confirmed", "Booking Confirmed", "See you")
    notification_service.notify(customer_user.id, "package_approved", "Package Approved", "Enjoy")


class TestInAppFeed:
    def test_list_and_unread_count(self, client, customer_headers, two_notifications):
        r = client.get(API, headers=customer_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["unread_count"] == 2
        assert {n["type"] for n in body["notifications"]} == {"booking_confirmed", "package_approved"}

    def test_mark_one_read(self, client, customer_headers, two_notifications):
        first = client.get(API, headers=customer_headers).json()["notifications"][0]
        r = client.post(f"{API}/{first['id']}/read", headers=customer_headers)
        assert r.status_code == 200
        assert r.json()["is_read"] is True

        unread = client.get(API, headers=customer_headers, params={"unread_only": True}).json()
        assert unread["unread_count"] == 1
        assert len(unread["notifications"]) == 1

    def test_mark_all_read(self, client, customer_headers, two_notifications):
        r = client.post(f"{API}/read-all", headers=customer_headers)
        assert r.status_code == 200
        assert r.json()["count"] == 2
        assert client.get(API, headers=customer_headers).json()["unread_count"] == 0

    def test_cannot_touch_someone_elses(self, client, teacher_headers, customer_headers, two_notifications):
        notification_id = client.get(API, headers=customer_headers).json()["notifications"][0]["id"]
        assert client.post(f"{API}/{notification_id}/read", headers=teacher_headers).status_code == 404
        assert client.delete(f"{API}/{notification_id}", headers=teacher_headers).status_code == 404

    def test_delete(self, client, customer_headers, two_notifications):
        notification_id = client.get(API, headers=customer_headers).json()["notifications"][0]["id"]
        assert client.delete(f"{API}/{notification_id}", headers=customer_headers).status_code == 204
        assert len(client.get(API, headers=customer_headers).json()["notifications"]) == 1


class TestTemplates:
    def test_admin_lists_and_edits(self, db, client, admin_headers):
        TemplateService(db).ensure_defaults()

        listed = client.get(f"{API}/templates", headers=admin_headers)
        assert listed.status_code == 200
        keys = {t["key"] for t in listed.json()}
        assert "booking_confirmed" in keys

        r = client.put(
            f"{API}/templates/booking_confirmed",
            headers=admin_headers,
            json={"body": "Confirmed {{date}} {{time}} with {{teacher}}"},
        )
        assert r.status_code == 200
        assert r.json()["variables"] == ["date", "time", "teacher"]

    def test_unknown_template(self, client, admin_headers):
        r = client.put(f"{API}/templates/nope", headers=admin_headers, json={"body": "x"})
        assert r.status_code == 404

    def test_templates_are_admin_only(self, client, teacher_headers):
        assert client.get(f"{API}/templates", headers=teacher_headers).status_code == 403
