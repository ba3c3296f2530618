"""
Alerts — Celery Tasks

Alert evaluation (per medicine and the periodic fan-out over all
medicines), notification delivery and the daily inventory summary.

@file alerts/tasks.py
"""

import logging
from smtplib import SMTPException

from celery import group, shared_task

from core.conf import engine_setting

logger = logging.getLogger('medistock')


def chunked(items: list, size: int) -> list[list]:
    return [items[start:start + size] for start in range(0, len(items), size)]


@shared_task(name='alerts.evaluate_medicine')
def evaluate_medicine_alerts_task(medicine_id: str):
    """Re-evaluate one medicine after its stock or history changed."""
    from .services import AlertEngine

    summary = AlertEngine.evaluate_many([medicine_id])
    logger.info('evaluate_medicine_alerts_task %s: %s', medicine_id, summary)
    return summary


@shared_task(name='alerts.evaluate_chunk')
def evaluate_alert_chunk_task(medicine_ids: list[str]):
    from .services import AlertEngine

    return AlertEngine.evaluate_many(medicine_ids)


@shared_task(name='alerts.evaluate_all')
def evaluate_all_alerts_task():
    """
    Periodic task: evaluate every medicine. Medicines are split into chunks
    evaluated in parallel by the worker pool; failures stay per medicine.
    """
    from medicines.models import Medicine

    medicine_ids = [str(pk) for pk in Medicine.objects.values_list('pk', flat=True)]
    chunks = chunked(medicine_ids, engine_setting('EVALUATION_CHUNK_SIZE'))
    if chunks:
        group(evaluate_alert_chunk_task.s(chunk) for chunk in chunks).apply_async()
    logger.info(
        'evaluate_all_alerts_task dispatched %d medicines in %d chunks.',
        len(medicine_ids), len(chunks),
    )
    return {'medicines': len(medicine_ids), 'chunks': len(chunks)}


@shared_task(
    name='alerts.send_notification',
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    max_retries=3,
)
def send_notification_task(channel: str, recipient: str, message: str):
    from .notifications import deliver

    deliver(channel, recipient, message)


@shared_task(name='alerts.daily_inventory_summary')
def daily_inventory_summary_task():
    """Daily: send the inventory summary to users who opted in."""
    from medicines.services import InventoryService

    from .models import Alert
    from .notifications import notify_recipients

    summary = InventoryService.dashboard_summary()
    open_alerts = Alert.objects.unresolved()
    message = '\n'.join([
        f'[MediStock] Daily inventory summary — {summary["as_of"].isoformat()}',
        f'Medicines: {summary["total_medicines"]}',
        f'Low or critical stock: {summary["low_stock_count"]}',
        f'Batches expiring within {summary["expiry_warning_days"]} days: {summary["expiring_batches"]}',
        f'Expired batches still in stock: {summary["expired_batches"]}',
        f'Total stock value: {summary["total_stock_value"]:,.2f}',
        f'Open alerts: {open_alerts.count()} ({open_alerts.filter(severity=Alert.Severity.HIGH).count()} high)',
    ])
    sent = notify_recipients('daily_summary', message)
    logger.info('daily_inventory_summary_task sent %d notifications.', sent)
    return {'sent': sent}
