"""
Alerts — Signals

Schedule an alert re-evaluation once the transaction that changed a
medicine's thresholds, batches or consumption history commits.

@file alerts/signals.py
"""

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from medicines.models import InventoryBatch, Medicine
from stock.models import ConsumptionRecord


def schedule_evaluation(medicine_id) -> None:
    from .tasks import evaluate_medicine_alerts_task

    transaction.on_commit(lambda: evaluate_medicine_alerts_task.delay(str(medicine_id)))


@receiver(post_save, sender=Medicine)
def medicine_saved(sender, instance, raw=False, **kwargs):
    if not raw:
        schedule_evaluation(instance.pk)


@receiver(post_save, sender=InventoryBatch)
def batch_saved(sender, instance, raw=False, **kwargs):
    if not raw:
        schedule_evaluation(instance.medicine_id)


@receiver(post_delete, sender=InventoryBatch)
def batch_deleted(sender, instance, origin=None, **kwargs):
    # Skip cascades from a deleted medicine; there is nothing left to evaluate.
    if isinstance(origin, Medicine):
        return
    schedule_evaluation(instance.medicine_id)


@receiver(post_save, sender=ConsumptionRecord)
def consumption_recorded(sender, instance, created, raw=False, **kwargs):
    if created and not raw:
        schedule_evaluation(instance.medicine_id)
