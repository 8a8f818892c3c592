"""Minimal LINE Messaging API client for push and reply messages."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class LineApiError(RuntimeError):
    """Raised when the LINE Messaging API responds with an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body


def _secret_value(value: str | SecretStr | None) -> str:
    if value is None:
        return ""
    return value.get_secret_value() if isinstance(value, SecretStr) else value


class LineClient:
    """Thin client for the LINE Messaging API."""

    def __init__(
        self,
        *,
        access_token: str | SecretStr | None,
        channel_secret: str | SecretStr | None,
        base_url: str = "https://api.line.me/v2/bot",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._access_token = _secret_value(access_token)
        self._channel_secret = _secret_value(channel_secret)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._access_token and self._channel_secret)

    def push_text(self, to: str, text: str) -> bool:
        """Push a text message to a LINE user. Returns False when LINE is not configured."""
        if not self.configured:
            logger.warning("LINE credentials missing; skipping push to %s", to)
            return False
        self.request(
            "POST",
            "/message/push",
            json_body={"to": to, "messages": [{"type": "text", "text": text}]},
        )
        return True

    def reply_text(self, reply_token: str, text: str) -> bool:
        """Answer a webhook event through its reply token."""
        if not self.configured:
            logger.warning("LINE credentials missing; skipping reply")
            return False
        self.request(
            "POST",
            "/message/reply",
            json_body={"replyToken": reply_token, "messages": [{"type": "text", "text": text}]},
        )
        return True

    def verify_signature(self, body: bytes, signature: str) -> bool:
        """Check the ``x-line-signature`` header against the raw request body."""
        if not self._channel_secret or not signature:
            return False
        digest = hmac.new(self._channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
        expected = base64.b64encode(digest).decode("utf-8")
        return hmac.compare_digest(expected, signature)

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Perform a raw LINE API request and return the parsed JSON payload."""

        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": "application/json",
            },
        ) as client:
            try:
                response = client.request(method, url, json=json_body)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                try:
                    error_payload: Any = exc.response.json()
                except json.JSONDecodeError:
                    error_payload = exc.response.text
                logger.error(
                    "LINE API error %s for %s %s: %s",
                    status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                raise LineApiError(
                    f"LINE API responded with status {status}",
                    status_code=status,
                    error_body=error_payload,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("LINE request failure for %s %s: %s", method, path, str(exc))
                raise LineApiError("Failed to reach LINE API") from exc

        if not response.content:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise LineApiError("Received malformed JSON from LINE") from exc
