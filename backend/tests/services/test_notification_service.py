from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from app.core.exceptions import NotFoundException, RepositoryException
from app.core.timezone_utils import studio_datetime, utc_now
from app.integrations.line_client import LineApiError
from app.models.notification import Notification
from app.services.notification_service import (
    ERROR_LINE_NOT_CONFIGURED,
    ERROR_NO_LINE_ID,
    NotificationService,
    booking_payload,
)
from app.services.template_service import TemplateService
from tests.factories.studio_builders import make_booking, make_package

PAYLOAD = {"name": "Mali", "date": "04/03/2030", "time": "10:00", "teacher": "Ploy"}


@pytest.fixture
def templates(db):
    TemplateService(db).ensure_defaults()


def _queue(service, db, user, type="BOOKING_CONFIRMED", scheduled_for=None, payload=None):
    notification = service.schedule(
        user.id, type, payload or PAYLOAD, scheduled_for=scheduled_for or utc_now() - timedelta(minutes=1)
    )
    db.commit()
    return notification


class TestOutboundQueue:
    def test_sends_due_notification_over_line(
        self, db, templates, notification_service, line_client, customer_user
    ):
        notification = _queue(notification_service, db, customer_user)
        result = notification_service.send_due_notifications()

        assert result == {"processed": 1, "sent": 1, "failed": 0}
        line_client.push_text.assert_called_once()
        to, text = line_client.push_text.call_args.args
        assert to == "U-customer"
        assert "Hi Mali!" in text
        assert "04/03/2030 at 10:00 with Ploy" in text
        assert notification.status == "sent"
        assert notification.sent_at is not None

    def test_future_notifications_wait(self, db, templates, notification_service, line_client, customer_user):
        _queue(notification_service, db, customer_user, scheduled_for=utc_now() + timedelta(hours=1))
        assert notification_service.send_due_notifications()["processed"] == 0
        line_client.push_text.assert_not_called()

    def test_user_without_line_fails(self, db, templates, notification_service, other_customer_user):
        notification = _queue(notification_service, db, other_customer_user)
        result = notification_service.send_due_notifications()
        assert result["failed"] == 1
        assert notification.status == "failed"
        assert notification.error_message == ERROR_NO_LINE_ID

    def test_missing_template_fails(self, db, notification_service, customer_user):
        notification = _queue(notification_service, db, customer_user)
        notification_service.send_due_notifications()
        assert notification.error_message == "Template not found: booking_confirmed"

    def test_line_api_error_is_recorded(self, db, templates, notification_service, line_client, customer_user):
        line_client.push_text.side_effect = LineApiError("LINE API responded with status 400", 400)
        notification = _queue(notification_service, db, customer_user)
        result = notification_service.send_due_notifications()
        assert result == {"processed": 1, "sent": 0, "failed": 1}
        assert notification.error_message == "LINE API responded with status 400"

    def test_unconfigured_line(self, db, templates, notification_service, line_client, customer_user):
        line_client.push_text.return_value = False
        notification = _queue(notification_service, db, customer_user)
        notification_service.send_due_notifications()
        assert notification.error_message == ERROR_LINE_NOT_CONFIGURED

    def test_batch_size_limits_processing(self, db, templates, notification_service, customer_user):
        for _ in range(3):
            _queue(notification_service, db, customer_user)
        assert notification_service.send_due_notifications(batch_size=2)["processed"] == 2
        assert notification_service.send_due_notifications(batch_size=2)["processed"] == 1

    def test_unexpected_error_keeps_earlier_sends(
        self, db, templates, notification_service, line_client, customer_user, monkeypatch
    ):
        first = _queue(notification_service, db, customer_user, scheduled_for=utc_now() - timedelta(minutes=2))
        second = _queue(notification_service, db, customer_user)
        first_id, second_id = first.id, second.id

        lookup = notification_service.user_repository.get_by_id
        calls = []

        def flaky_lookup(user_id, load_relationships=True):
            calls.append(user_id)
            if len(calls) == 2:
                raise RepositoryException("connection reset")
            return lookup(user_id, load_relationships=load_relationships)

        monkeypatch.setattr(notification_service.user_repository, "get_by_id", flaky_lookup)

        result = notification_service.send_due_notifications()

        assert result == {"processed": 2, "sent": 1, "failed": 1}
        line_client.push_text.assert_called_once()
        db.expire_all()
        assert db.get(Notification, first_id).status == "sent"
        failed = db.get(Notification, second_id)
        assert failed.status == "failed"
        assert "connection reset" in failed.error_message

    def test_broken_stored_template_fails(self, db, templates, notification_service, line_client, customer_user):
        template = TemplateService(db).get_for_type("BOOKING_CONFIRMED")
        template.body = "Hi {{ name"
        db.commit()
        notification = _queue(notification_service, db, customer_user)

        assert notification_service.send_due_notifications()["failed"] == 1
        assert "could not be rendered" in notification.error_message
        line_client.push_text.assert_not_called()


class TestReminders:
    def test_creates_each_reminder_once(self, db, notification_service, customer_user, teacher_user):
        now = utc_now()
        customer = customer_user.customer_profile
        teacher = teacher_user.teacher_profile
        tomorrow = make_booking(db, customer, teacher, now + timedelta(hours=24, minutes=10))
        tonight = make_booking(db, customer, teacher, now + timedelta(hours=6, minutes=5))
        make_booking(db, customer, teacher, now + timedelta(hours=24), status="pending")

        assert notification_service.create_reminders(now) == {"reminder_24h": 1, "reminder_6h": 1}
        assert notification_service.create_reminders(now) == {"reminder_24h": 0, "reminder_6h": 0}

        reminder = db.query(Notification).filter_by(booking_id=tomorrow.id).one()
        assert reminder.type == "REMINDER_24H"
        assert reminder.scheduled_for == tomorrow.start_time - timedelta(hours=24)
        assert reminder.payload["teacher"] == "Ploy"
        assert db.query(Notification).filter_by(booking_id=tonight.id).one().type == "REMINDER_6H"

    def test_booking_payload_uses_studio_time(self, db, customer_user, teacher_user):
        start = studio_datetime(date(2030, 3, 4), time(18, 30))
        booking = make_booking(db, customer_user.customer_profile, teacher_user.teacher_profile, start)
        payload = booking_payload(booking, reason=None, extra="x")
        assert payload == {
            "name": "Mali Customer",
            "date": "04/03/2030",
            "time": "18:30",
            "teacher": "Ploy",
            "extra": "x",
        }


class TestReengagement:
    def test_inactive_customer_is_reminded_once(
        self, db, notification_service, customer_user, teacher_user, customer_package
    ):
        make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(days=40),
            status="completed",
            package=customer_package,
        )

        assert notification_service.queue_reengagement() == {"inactive": 1, "missed_session": 0}
        queued = db.query(Notification).filter_by(type="INACTIVE_30D").one()
        assert queued.user_id == customer_user.id
        assert queued.payload == {"name": "Mali Customer", "sessions": 10}

        assert notification_service.queue_reengagement()["inactive"] == 0

    def test_recent_or_upcoming_session_keeps_customer_active(
        self, db, notification_service, customer_user, teacher_user, customer_package
    ):
        make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() + timedelta(days=2),
            package=customer_package,
        )
        assert notification_service.queue_reengagement()["inactive"] == 0

    def test_customers_without_sessions_or_line_are_skipped(
        self, db, notification_service, customer_user, other_customer_user
    ):
        make_package(db, customer_user.customer_profile, remaining=0)
        make_package(
            db,
            customer_user.customer_profile,
            valid_from=utc_now() - timedelta(days=200),
            valid_to=utc_now() - timedelta(days=1),
        )
        make_package(db, other_customer_user.customer_profile)

        assert notification_service.queue_reengagement()["inactive"] == 0
        assert db.query(Notification).count() == 0

    def test_no_show_gets_missed_session_message_once(
        self, db, notification_service, customer_user, teacher_user
    ):
        recent = make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(hours=3),
            status="noShow",
        )
        make_booking(
            db,
            customer_user.customer_profile,
            teacher_user.teacher_profile,
            utc_now() - timedelta(days=5),
            status="noShow",
        )

        assert notification_service.queue_reengagement()["missed_session"] == 1
        queued = db.query(Notification).filter_by(type="MISSED_SESSION").one()
        assert queued.booking_id == recent.id
        assert queued.payload["name"] == "Mali Customer"
        assert queued.payload["teacher"] == "Ploy"

        assert notification_service.queue_reengagement()["missed_session"] == 0


class TestInAppFeed:
    def test_feed_lifecycle(self, notification_service, customer_user):
        for i in range(3):
            notification_service.notify(customer_user.id, "booking_approved", f"Title {i}", "Body")

        feed = notification_service.list_for_user(customer_user.id)
        assert feed["unread_count"] == 3
        first = feed["notifications"][0]

        notification_service.mark_read(customer_user.id, first.id)
        assert notification_service.list_for_user(customer_user.id)["unread_count"] == 2
        assert len(notification_service.list_for_user(customer_user.id, unread_only=True)["notifications"]) == 2

        assert notification_service.mark_all_read(customer_user.id) == 2
        assert notification_service.list_for_user(customer_user.id)["unread_count"] == 0

        notification_service.delete(customer_user.id, first.id)
        assert len(notification_service.list_for_user(customer_user.id)["notifications"]) == 2

    def test_cannot_touch_someone_elses_notification(self, notification_service, customer_user, other_customer_user):
        notification_service.notify(customer_user.id, "booking_approved", "Title", "Body")
        notification = notification_service.list_for_user(customer_user.id)["notifications"][0]
        with pytest.raises(NotFoundException):
            notification_service.mark_read(other_customer_user.id, notification.id)
        with pytest.raises(NotFoundException):
            notification_service.delete(other_customer_user.id, notification.id)

    def test_notify_without_user_is_noop(self, notification_service):
        assert notification_service.notify(None, "booking_approved", "Title", "Body") is False

    def test_notify_admins(self, db, admin_user, teacher_user):
        service = NotificationService(db)
        assert service.notify_admins("package_requested", "New", "Body") == 1
        assert service.list_for_user(admin_user.id)["unread_count"] == 1
        assert service.list_for_user(teacher_user.id)["unread_count"] == 0
