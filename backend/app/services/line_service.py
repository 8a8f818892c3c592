# backend/app/services/line_service.py
"""
LINE account linking and webhook handling.

Customers link their LINE account by following the studio's official
account and replying with the email or phone number they registered with.
Admins can also link or unlink accounts by hand.
"""

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..integrations.line_client import LineClient
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def get_line_client() -> LineClient:
    """Build a client from the current settings."""
    return LineClient(
        access_token=settings.line_channel_access_token,
        channel_secret=settings.line_channel_secret,
        base_url=settings.line_api_base_url,
        timeout=settings.line_request_timeout_seconds,
    )


def welcome_message() -> str:
    return (
        f"Welcome to {settings.studio_name}!\n\n"
        "To link your account, please reply with your email address or phone number "
        "registered with us.\n\n"
        "Or contact our admin to link your account manually."
    )


def already_linked_message(name: str) -> str:
    return (
        f"Hi {name}!\n\n"
        "Your account is already linked. You'll receive booking confirmations and reminders here.\n\n"
        "For bookings and inquiries, please use the website or contact the studio."
    )


def linked_message(user: User) -> str:
    return (
        "Great! Your account has been linked successfully.\n\n"
        f"Name: {user.name}\nEmail: {user.email}\n\n"
        "You'll now receive booking confirmations and reminders via LINE."
    )


NOT_FOUND_MESSAGE = (
    "We couldn't find an account with that email or phone number.\n\n"
    "Please make sure you're registered with us first, or contact our admin for assistance."
)


class LineService(BaseService):
    def __init__(self, db: Session, client: Optional[LineClient] = None):
        super().__init__(db)
        self.client = client or get_line_client()
        self.user_repository = RepositoryFactory.create_user_repository(db)

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    @BaseService.measure_operation("link_line_user")
    def link_user(self, user_id: str, line_user_id: str) -> User:
        line_user_id = (line_user_id or "").strip()
        if not user_id or not line_user_id:
            raise ValidationException("user_id and line_user_id are required")
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found")
        holder = self.user_repository.get_by_line_user_id(line_user_id)
        if holder is not None and holder.id != user.id:
            raise ConflictException("This LINE account is already linked to another user")

        with self.transaction():
            user.line_user_id = line_user_id
        self.logger.info(f"Linked LINE user {line_user_id} to user {user.id}")
        return user

    @BaseService.measure_operation("unlink_line_user")
    def unlink_user(self, user_id: str) -> User:
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found")
        with self.transaction():
            user.line_user_id = None
        self.logger.info(f"Unlinked LINE from user {user.id}")
        return user

    @staticmethod
    def connection_status(user: User) -> Dict[str, Any]:
        return {"connected": user.has_line, "line_user_id": user.line_user_id}

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def verify_webhook(self, body: bytes, signature: Optional[str]) -> None:
        if not signature:
            raise ValidationException("No signature found")
        if not self.client.verify_signature(body, signature):
            raise ForbiddenException("Invalid signature")

    @BaseService.measure_operation("handle_line_webhook")
    def handle_webhook(self, body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify and process a webhook delivery; event failures are logged, not raised."""
        self.verify_webhook(body, signature)
        try:
            payload = json.loads(body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValidationException("Malformed webhook body") from exc
        if not isinstance(payload, dict):
            raise ValidationException("Webhook body must be a JSON object")
        events = payload.get("events") or []
        if not isinstance(events, list):
            raise ValidationException("Webhook events must be a list")

        handled = 0
        for event in events:
            if not isinstance(event, dict):
                self.logger.warning(f"Skipping LINE event that is not an object: {event!r}")
                continue
            try:
                self.handle_event(event)
                handled += 1
            except Exception as exc:
                self.db.rollback()
                self.logger.error(f"Error handling LINE event {event.get('type')}: {exc}")
        return {"success": True, "handled": handled}

    def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        self.logger.info(f"Received LINE event: {event_type}")
        line_user_id = (event.get("source") or {}).get("userId")
        if not line_user_id:
            self.logger.info("LINE event without a user source ignored")
            return

        if event_type == "follow":
            self._reply(event, line_user_id, welcome_message())
        elif event_type == "unfollow":
            user = self.user_repository.get_by_line_user_id(line_user_id)
            if user is not None:
                self.unlink_user(user.id)
        elif event_type == "message":
            message = event.get("message") or {}
            if message.get("type") == "text":
                self._handle_text(event, line_user_id, message.get("text") or "")
        else:
            self.logger.info(f"Unhandled LINE event type: {event_type}")

    def _handle_text(self, event: Dict[str, Any], line_user_id: str, text: str) -> None:
        existing = self.user_repository.get_by_line_user_id(line_user_id)
        if existing is not None:
            self._reply(event, line_user_id, already_linked_message(existing.name))
            return

        user = self.user_repository.find_by_contact(text)
        if user is None:
            self._reply(event, line_user_id, NOT_FOUND_MESSAGE)
            return

        self.link_user(user.id, line_user_id)
        self._reply(event, line_user_id, linked_message(user))

    def _reply(self, event: Dict[str, Any], line_user_id: str, text: str) -> None:
        reply_token = event.get("replyToken")
        if reply_token:
            self.client.reply_text(reply_token, text)
        else:
            self.client.push_text(line_user_id, text)
