from __future__ import annotations

import base64
import hashlib
import hmac
import json

import httpx
import pytest

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.integrations.line_client import LineApiError, LineClient
from app.services.line_service import NOT_FOUND_MESSAGE, LineService


@pytest.fixture
def service(db, line_client):
    return LineService(db, line_client)


def _body(*events) -> bytes:
    return json.dumps({"destination": "Ustudio", "events": list(events)}).encode("utf-8")


def _text_event(user_id: str, text: str) -> dict:
    return {
        "type": "message",
        "replyToken": "reply-1",
        "source": {"type": "user", "userId": user_id},
        "message": {"type": "text", "id": "1", "text": text},
    }


class TestLinking:
    def test_link_and_unlink(self, service, other_customer_user):
        user = service.link_user(other_customer_user.id, " U-new ")
        assert user.line_user_id == "U-new"
        assert LineService.connection_status(user) == {"connected": True, "line_user_id": "U-new"}

        user = service.unlink_user(other_customer_user.id)
        assert user.line_user_id is None

    def test_line_id_already_taken(self, service, customer_user, other_customer_user):
        with pytest.raises(ConflictException):
            service.link_user(other_customer_user.id, "U-customer")

    def test_validation(self, service):
        with pytest.raises(ValidationException):
            service.link_user("someone", "  ")
        with pytest.raises(NotFoundException):
            service.link_user("missing", "U-x")


class TestWebhook:
    def test_missing_signature(self, service):
        with pytest.raises(ValidationException):
            service.handle_webhook(_body(), None)

    def test_invalid_signature(self, service, line_client):
        line_client.verify_signature.return_value = False
        with pytest.raises(ForbiddenException):
            service.handle_webhook(_body(), "bad")

    def test_follow_sends_welcome(self, service, line_client):
        event = {"type": "follow", "replyToken": "r", "source": {"userId": "U-stranger"}}
        assert service.handle_webhook(_body(event), "sig") == {"success": True, "handled": 1}
        token, text = line_client.reply_text.call_args.args
        assert token == "r"
        assert "reply with your email address or phone number" in text

    def test_text_with_email_links_account(self, db, service, line_client, other_customer_user):
        service.handle_webhook(_body(_text_event("U-other", "OTHER@example.com")), "sig")
        db.refresh(other_customer_user)
        assert other_customer_user.line_user_id == "U-other"
        assert "linked successfully" in line_client.reply_text.call_args.args[1]

    def test_text_with_phone_links_account(self, db, service, customer_user):
        customer_user.line_user_id = None
        db.commit()
        service.handle_webhook(_body(_text_event("U-phone", "081-234-5678")), "sig")
        db.refresh(customer_user)
        assert customer_user.line_user_id == "U-phone"

    def test_unknown_contact(self, service, line_client):
        service.handle_webhook(_body(_text_event("U-who", "nobody@example.com")), "sig")
        assert line_client.reply_text.call_args.args[1] == NOT_FOUND_MESSAGE

    def test_already_linked(self, service, line_client, customer_user):
        service.handle_webhook(_body(_text_event("U-customer", "hello")), "sig")
        assert "already linked" in line_client.reply_text.call_args.args[1]

    def test_unfollow_unlinks(self, db, service, customer_user):
        event = {"type": "unfollow", "source": {"userId": "U-customer"}}
        service.handle_webhook(_body(event), "sig")
        db.refresh(customer_user)
        assert customer_user.line_user_id is None

    def test_failing_event_does_not_stop_batch(self, service, line_client):
        line_client.reply_text.side_effect = [LineApiError("boom"), True]
        follow = {"type": "follow", "replyToken": "r", "source": {"userId": "U-1"}}
        result = service.handle_webhook(_body(follow, follow), "sig")
        assert result == {"success": True, "handled": 1}

    def test_malformed_body(self, service):
        with pytest.raises(ValidationException):
            service.handle_webhook(b"{not json", "sig")


class TestLineClient:
    def test_signature_round_trip(self):
        client = LineClient(access_token="token", channel_secret="secret")
        body = b'{"events":[]}'
        signature = base64.b64encode(hmac.new(b"secret", body, hashlib.sha256).digest()).decode()
        assert client.verify_signature(body, signature)
        assert not client.verify_signature(body, "tampered")
        assert not LineClient(access_token="t", channel_secret=None).verify_signature(body, signature)

    def test_push_posts_text_message(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        client = LineClient(
            access_token="token", channel_secret="secret", transport=httpx.MockTransport(handler)
        )
        assert client.push_text("U1", "Hello") is True
        assert seen["url"] == "https://api.line.me/v2/bot/message/push"
        assert seen["auth"] == "Bearer token"
        assert seen["body"] == {"to": "U1", "messages": [{"type": "text", "text": "Hello"}]}

    def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"message": "bad"}))
        client = LineClient(access_token="token", channel_secret="secret", transport=transport)
        with pytest.raises(LineApiError) as exc_info:
            client.reply_text("r", "Hi")
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_body == {"message": "bad"}

    def test_unconfigured_client_skips(self):
        client = LineClient(access_token=None, channel_secret=None)
        assert not client.configured
        assert client.push_text("U1", "Hello") is False
