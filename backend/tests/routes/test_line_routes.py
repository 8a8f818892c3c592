from __future__ import annotations

import json

import pytest

API = "/api/v1/line"


def _follow_event(line_user_id="U-new"):
    return json.dumps(
        {
            "events": [
                {"type": "follow", "replyToken": "r-1", "source": {"type": "user", "userId": line_user_id}}
            ]
        }
    )


class TestWebhook:
    def test_missing_signature(self, client, line_client):
        r = client.post(f"{API}/webhook", content=_follow_event())
        assert r.status_code == 400
        assert r.json()["detail"] == "No signature found"
        line_client.verify_signature.assert_not_called()

    def test_bad_signature(self, client, line_client):
        line_client.verify_signature.return_value = False
        r = client.post(
            f"{API}/webhook", content=_follow_event(), headers={"x-line-signature": "bogus"}
        )
        assert r.status_code == 403

    def test_follow_event_is_answered(self, client, line_client):
        r = client.post(
            f"{API}/webhook", content=_follow_event(), headers={"x-line-signature": "sig"}
        )
        assert r.status_code == 200
        assert r.json() == {"success": True, "handled": 1}
        line_client.reply_text.assert_called_once()

    def test_empty_delivery(self, client):
        r = client.post(
            f"{API}/webhook", content=json.dumps({"events": []}), headers={"x-line-signature": "sig"}
        )
        assert r.status_code == 200
        assert r.json()["handled"] == 0

    def test_non_object_events_are_skipped(self, client, line_client):
        body = json.loads(_follow_event())
        body["events"].insert(0, "garbage")
        r = client.post(
            f"{API}/webhook", content=json.dumps(body), headers={"x-line-signature": "sig"}
        )
        assert r.status_code == 200
        assert r.json() == {"success": True, "handled": 1}
        line_client.reply_text.assert_called_once()

    @pytest.mark.parametrize("body", ["[]", "\"events\"", json.dumps({"events": "follow"})])
    def test_body_must_be_an_object_with_event_list(self, client, body):
        r = client.post(f"{API}/webhook", content=body, headers={"x-line-signature": "sig"})
        assert r.status_code == 400
        assert r.headers["content-type"].startswith("application/problem+json")


class TestLinking:
    def test_admin_links_and_unlinks(self, client, admin_headers, other_customer_user):
        r = client.post(
            f"{API}/link",
            headers=admin_headers,
            json={"user_id": other_customer_user.id, "line_user_id": "U-other"},
        )
        assert r.status_code == 200
        assert r.json() == {"connected": True, "line_user_id": "U-other"}

        r = client.delete(f"{API}/unlink/{other_customer_user.id}", headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["connected"] is False

    def test_line_id_already_linked_elsewhere(self, client, admin_headers, customer_user, other_customer_user):
        r = client.post(
            f"{API}/link",
            headers=admin_headers,
            json={"user_id": other_customer_user.id, "line_user_id": "U-customer"},
        )
        assert r.status_code == 409

    def test_linking_is_admin_only(self, client, customer_headers, customer_user):
        r = client.post(
            f"{API}/link",
            headers=customer_headers,
            json={"user_id": customer_user.id, "line_user_id": "U-self"},
        )
        assert r.status_code == 403

    def test_status(self, client, customer_headers):
        r = client.get(f"{API}/status", headers=customer_headers)
        assert r.status_code == 200
        assert r.json() == {"connected": True, "line_user_id": "U-customer"}
