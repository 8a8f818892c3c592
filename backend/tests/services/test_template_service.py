from __future__ import annotations

import pytest

from app.core.enums import NotificationType
from app.core.exceptions import NotFoundException, ValidationException
from app.services.template_service import DEFAULT_TEMPLATES, TemplateService, template_key


@pytest.fixture
def service(db):
    return TemplateService(db)


def test_render_fills_placeholders(service):
    body = "Hi {{name}}, see you at {{ time }}{{missing}}."
    assert service.render(body, {"name": "Mali", "time": "10:00"}) == "Hi Mali, see you at 10:00."


def test_render_is_plain_text(service):
    assert service.render("{{ note }} & {{ gone }}", {"note": "<b>Mat</b>", "gone": None}) == "<b>Mat</b> & "


def test_extract_variables_in_order_without_duplicates(service):
    assert service.extract_variables("{{a}} {{ b }} {{a}}") == ["a", "b"]


def test_template_key():
    assert template_key(NotificationType.REMINDER_24H.value) == "reminder_24h"


def test_every_notification_type_has_a_default():
    assert set(DEFAULT_TEMPLATES) == {t.value for t in NotificationType}


class TestTemplateService:
    def test_ensure_defaults_is_idempotent(self, db):
        service = TemplateService(db)
        assert service.ensure_defaults() == len(DEFAULT_TEMPLATES)
        assert service.ensure_defaults() == 0
        template = service.get_for_type("BOOKING_REJECTED")
        assert template.variables == ["name", "date", "time", "reason"]

    def test_update_template(self, db):
        service = TemplateService(db)
        service.ensure_defaults()
        updated = service.update_template("PROMO", "  Hello {{name}}! {{offer}}  ")
        assert updated.key == "promo"
        assert updated.body == "Hello {{name}}! {{offer}}"
        assert updated.variables == ["name", "offer"]

        with pytest.raises(ValidationException):
            service.update_template("promo", "   ")
        with pytest.raises(NotFoundException):
            service.update_template("unknown", "Body")

    def test_update_rejects_invalid_syntax(self, db):
        service = TemplateService(db)
        service.ensure_defaults()
        with pytest.raises(ValidationException, match="Invalid template syntax"):
            service.update_template("promo", "Hello {{ name")
        assert service.get_for_type("PROMO").body == "{{message}}"
