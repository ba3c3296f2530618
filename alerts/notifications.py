"""
Alerts — Notification Dispatch

The engine decides that a notification is due and what it says; a
dispatcher decides how it is delivered. A dispatcher is any object with
``notify(channel, recipient, message)``, loaded from the dotted path in
``settings.ALERT_NOTIFICATION_DISPATCHER``.

Dispatch is fire-and-forget: failures are logged and swallowed here and
never reach the alert mutation that triggered them.

@file alerts/notifications.py
"""

import logging
from typing import Protocol

from django.conf import settings
from django.core.mail import send_mail
from django.utils.module_loading import import_string

from users.models import NotificationPreference
from users.services import PreferenceService

logger = logging.getLogger('medistock')

DEFAULT_DISPATCHER = 'alerts.notifications.CeleryNotificationDispatcher'

# Alert type -> preference flag that opts a user in.
ALERT_CATEGORIES = {
    'stockout': 'low_stock_alerts',
    'low_stock': 'low_stock_alerts',
    'overstock': 'low_stock_alerts',
    'expiry_warning': 'expiry_alerts',
}


class NotificationDispatcher(Protocol):
    def notify(self, channel: str, recipient: str, message: str) -> None: ...


class CeleryNotificationDispatcher:
    """Queue each notification as a Celery task; delivery happens in a worker."""

    def notify(self, channel: str, recipient: str, message: str) -> None:
        from .tasks import send_notification_task

        send_notification_task.delay(channel, recipient, message)


class LoggingNotificationDispatcher:
    """Log instead of delivering. Useful in development."""

    def notify(self, channel: str, recipient: str, message: str) -> None:
        logger.info('Notification [%s] to %s: %s', channel, recipient, message)


def get_dispatcher() -> NotificationDispatcher:
    path = getattr(settings, 'ALERT_NOTIFICATION_DISPATCHER', DEFAULT_DISPATCHER)
    return import_string(path)()


def deliver(channel: str, recipient: str, message: str) -> None:
    """Actually send one notification. Called from the Celery worker."""
    if channel == NotificationPreference.ChannelChoices.EMAIL:
        send_mail(
            subject=message.splitlines()[0][:120],
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
        )
        logger.info('Email notification sent to %s', recipient)
    elif channel in (NotificationPreference.ChannelChoices.SMS, NotificationPreference.ChannelChoices.WHATSAPP):
        # No SMS / WhatsApp provider is configured; the message is logged only.
        logger.info('%s notification to %s: %s', channel, recipient, message)
    else:
        logger.warning('Unknown notification channel %r for %s', channel, recipient)


def notify_recipients(category: str, message: str) -> int:
    """
    Send ``message`` to every opted-in recipient for ``category``.

    Returns the number of notifications handed to the dispatcher.
    """
    try:
        dispatcher = get_dispatcher()
        recipients = PreferenceService.alert_recipients(category)
    except Exception:
        logger.exception('Could not prepare notifications for category %s', category)
        return 0

    sent = 0
    for channel, recipient in recipients:
        try:
            dispatcher.notify(channel, recipient, message)
            sent += 1
        except Exception:
            logger.exception('Notification dispatch failed: channel=%s recipient=%s', channel, recipient)
    return sent


def format_alert_message(alert) -> str:
    return (
        f'[MediStock] {alert.get_severity_display()} — {alert.get_alert_type_display()}\n'
        f'{alert.message}'
    )


def notify_alert(alert) -> int:
    category = ALERT_CATEGORIES.get(alert.alert_type, 'low_stock_alerts')
    return notify_recipients(category, format_alert_message(alert))
