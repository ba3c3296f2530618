"""
Alerts — Notification Tests

@file alerts/tests/test_notifications.py
"""

import pytest

from alerts.notifications import (
    ALERT_CATEGORIES,
    CeleryNotificationDispatcher,
    LoggingNotificationDispatcher,
    deliver,
    format_alert_message,
    get_dispatcher,
    notify_alert,
    notify_recipients,
)
from tests.factories import AlertFactory, MedicineFactory, NotificationPreferenceFactory, UserFactory, UserRoleFactory
from users.models import UserRole

pytestmark = pytest.mark.django_db


class TestDispatcher:

    def test_loaded_from_settings(self):
        assert isinstance(get_dispatcher(), LoggingNotificationDispatcher)

    def test_celery_dispatcher(self, settings):
        settings.ALERT_NOTIFICATION_DISPATCHER = 'alerts.notifications.CeleryNotificationDispatcher'
        assert isinstance(get_dispatcher(), CeleryNotificationDispatcher)


class TestRecipients:

    def test_managers_and_admins_notified(self, pharmacy_manager, admin_user, store_manager, user, notify_spy):
        sent = notify_recipients('low_stock_alerts', 'Stock is low')
        recipients = {call.args[1] for call in notify_spy.call_args_list}
        assert sent == 2
        assert recipients == {pharmacy_manager.email, admin_user.email}

    def test_opted_out_user_skipped(self, pharmacy_manager, notify_spy):
        NotificationPreferenceFactory(user=pharmacy_manager, expiry_alerts=False)
        assert notify_recipients('expiry_alerts', 'Batch expiring') == 0
        assert notify_recipients('low_stock_alerts', 'Stock is low') == 1

    def test_daily_summary_is_opt_in(self, pharmacy_manager, notify_spy):
        assert notify_recipients('daily_summary', 'Summary') == 0

    def test_every_enabled_channel(self, notify_spy):
        manager = UserFactory(email='night-shift@medistock.test')
        UserRoleFactory(user=manager, role=UserRole.RoleChoices.PHARMACY_MANAGER)
        NotificationPreferenceFactory(user=manager, phone='+254700000001', sms_enabled=True, whatsapp_enabled=True)

        assert notify_recipients('low_stock_alerts', 'Stock is low') == 3
        assert [call.args[:2] for call in notify_spy.call_args_list] == [
            ('email', 'night-shift@medistock.test'),
            ('sms', '+254700000001'),
            ('whatsapp', '+254700000001'),
        ]

    def test_inactive_user_skipped(self, notify_spy):
        manager = UserFactory(is_active=False)
        UserRoleFactory(user=manager, role=UserRole.RoleChoices.PHARMACY_MANAGER)
        assert notify_recipients('low_stock_alerts', 'Stock is low') == 0

    def test_failed_dispatch_not_counted(self, pharmacy_manager, admin_user, notify_spy):
        notify_spy.side_effect = [ConnectionError('down'), None]
        assert notify_recipients('low_stock_alerts', 'Stock is low') == 1


class TestMessages:

    def test_categories(self):
        assert ALERT_CATEGORIES['expiry_warning'] == 'expiry_alerts'
        assert ALERT_CATEGORIES['stockout'] == 'low_stock_alerts'

    def test_format_alert_message(self):
        medicine = MedicineFactory(name='Metformin')
        alert = AlertFactory(medicine=medicine, alert_type='stockout', severity='high',
                             message='Metformin is out of stock.')
        lines = format_alert_message(alert).splitlines()
        assert lines[0].startswith('[MediStock] High')
        assert 'Stockout' in lines[0]
        assert lines[1] == 'Metformin is out of stock.'

    def test_expiry_alert_uses_expiry_preference(self, pharmacy_manager, notify_spy):
        NotificationPreferenceFactory(user=pharmacy_manager, low_stock_alerts=False)
        alert = AlertFactory(alert_type='expiry_warning')
        assert notify_alert(alert) == 1


class TestDeliver:

    def test_email(self, mailoutbox):
        deliver('email', 'pharmacist@medistock.test', '[MediStock] High alert\nInsulin is out of stock.')
        assert len(mailoutbox) == 1
        email = mailoutbox[0]
        assert email.to == ['pharmacist@medistock.test']
        assert email.subject == '[MediStock] High alert'
        assert 'Insulin is out of stock.' in email.body

    def test_sms_is_logged_only(self, mailoutbox):
        deliver('sms', '+254700000001', 'Insulin is out of stock.')
        assert mailoutbox == []

    def test_celery_dispatch_delivers_email(self, settings, pharmacy_manager, mailoutbox):
        settings.ALERT_NOTIFICATION_DISPATCHER = 'alerts.notifications.CeleryNotificationDispatcher'
        assert notify_recipients('low_stock_alerts', 'Paracetamol stock is low') == 1
        assert mailoutbox[0].to == [pharmacy_manager.email]
