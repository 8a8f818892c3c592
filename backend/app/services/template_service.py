# backend/app/services/template_service.py
"""
Message templates for outbound LINE notifications.

Template bodies are Jinja2 strings with ``{{ name }}`` placeholders filled
from the notification payload. Each ``NotificationType`` maps to the template
whose key is the lower-cased type name.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, TemplateSyntaxError, meta, nodes
from sqlalchemy.orm import Session

from ..core.enums import NotificationChannel, NotificationType
from ..core.exceptions import NotFoundException, ValidationException
from ..models.notification import MessageTemplate
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: Dict[str, str] = {
    NotificationType.BOOKING_CONFIRMED.value: (
        "Hi {{name}}! Your Pilates session on {{date}} at {{time}} with {{teacher}} "
        "has been confirmed. See you there!"
    ),
    NotificationType.BOOKING_REJECTED.value: (
        "Hi {{name}}, we couldn't confirm your booking request for {{date}} at {{time}}. "
        "Reason: {{reason}}. Please contact us to reschedule."
    ),
    NotificationType.REMINDER_24H.value: (
        "Reminder: You have a Pilates session tomorrow at {{time}} with {{teacher}}. "
        "Looking forward to seeing you!"
    ),
    NotificationType.REMINDER_6H.value: (
        "Reminder: Your Pilates session with {{teacher}} starts today at {{time}}. See you soon!"
    ),
    NotificationType.BOOKING_REMINDER.value: (
        "Hi {{name}}, this is a reminder of your session on {{date}} at {{time}} with {{teacher}}."
    ),
    NotificationType.MISSED_SESSION.value: (
        "Hi {{name}}, we missed you at your session on {{date}} at {{time}}. "
        "Contact us on LINE to book your next one."
    ),
    NotificationType.INACTIVE_30D.value: (
        "Hi {{name}}, we haven't seen you in a while! You have {{sessions}} sessions remaining. "
        "Book your next session today!"
    ),
    NotificationType.PACKAGE_EXPIRING.value: (
        "Hi {{name}}, your package {{package}} expires on {{date}} "
        "with {{sessions}} sessions remaining."
    ),
    NotificationType.PROMO.value: "{{message}}",
    NotificationType.WELCOME.value: (
        "Welcome to {{studio}}, {{name}}! You'll receive booking confirmations "
        "and reminders here."
    ),
}


def template_key(notification_type: str) -> str:
    return notification_type.lower()


def build_environment() -> Environment:
    """Plain-text environment: LINE messages are not HTML, and None renders as empty text."""
    return Environment(
        autoescape=False,
        keep_trailing_newline=True,
        finalize=lambda value: "" if value is None else value,
    )


class TemplateService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_message_template_repository(db)
        self.env = build_environment()

    def extract_variables(self, body: str) -> List[str]:
        """Placeholder names in order of first use."""
        ast = self.env.parse(body)
        undeclared = meta.find_undeclared_variables(ast)
        ordered: List[str] = []
        for node in ast.find_all(nodes.Name):
            if node.name in undeclared and node.name not in ordered:
                ordered.append(node.name)
        return ordered

    def render(self, body: str, variables: Mapping[str, Any]) -> str:
        """Render a template body; unknown names render as empty text."""
        return self.env.from_string(body).render(**dict(variables))

    def get_for_type(self, notification_type: str) -> Optional[MessageTemplate]:
        return self.repository.get_by_key(template_key(notification_type))

    @BaseService.measure_operation("ensure_default_templates")
    def ensure_defaults(self) -> int:
        """Create any missing default template. Returns how many were added."""
        created = 0
        with self.transaction():
            for notification_type, body in DEFAULT_TEMPLATES.items():
                key = template_key(notification_type)
                if self.repository.get_by_key(key) is not None:
                    continue
                self.repository.create(
                    key=key,
                    channel=NotificationChannel.LINE.value,
                    body=body,
                    variables=self.extract_variables(body),
                )
                created += 1
        if created:
            self.logger.info(f"Seeded {created} message templates")
        return created

    def list_templates(self) -> List[MessageTemplate]:
        return self.repository.list_all()

    @BaseService.measure_operation("update_template")
    def update_template(self, key: str, body: str) -> MessageTemplate:
        body = (body or "").strip()
        if not body:
            raise ValidationException("Template body cannot be empty")
        try:
            variables = self.extract_variables(body)
        except TemplateSyntaxError as exc:
            raise ValidationException(
                f"Invalid template syntax: {exc.message}", details={"line": exc.lineno}
            ) from exc
        template = self.repository.get_by_key(key.lower())
        if template is None:
            raise NotFoundException(f"Template not found: {key}")
        with self.transaction():
            template.body = body
            template.variables = variables
        self.logger.info(f"Template {template.key} updated")
        return template
