"""
Medicines — Service Layer

Business logic for the medicine catalogue, inventory batches and the
inventory dashboard. Every mutation is checked against the AccessPolicy
with the acting Principal and written to the audit trail.

@file medicines/services.py
"""

import datetime
import logging
from collections import Counter
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone

from core.conf import engine_setting
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE, AUDIT_ACTION_UPDATE
from core.exceptions import BusinessRuleViolation, DuplicateResourceError, ResourceNotFoundError
from core.services import AuditService
from users.policy import AccessPolicy, Action, Principal

from .classifier import StockStatus, assess_medicine
from .models import InventoryBatch, Medicine

logger = logging.getLogger('medistock')

IMMUTABLE_FIELDS = ('id', 'pk', 'created_at', 'updated_at')


def _apply(instance, fields: dict) -> None:
    for field, value in fields.items():
        if hasattr(instance, field) and field not in IMMUTABLE_FIELDS:
            setattr(instance, field, value)


class MedicineService:
    """Catalogue management for Medicine."""

    @staticmethod
    @transaction.atomic
    def create_medicine(*, principal: Principal, **fields) -> Medicine:
        AccessPolicy.check_fields(principal, Action.CREATE_MEDICINE, fields.keys())
        medicine = Medicine(**fields)
        medicine.full_clean()
        medicine.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE,
            model_name='Medicine',
            object_id=str(medicine.pk),
            new_values=AuditService.snapshot(medicine),
        )
        logger.info('Medicine %s created by %s', medicine.pk, principal.role)
        return medicine

    @staticmethod
    @transaction.atomic
    def update_medicine(*, medicine_id, principal: Principal, **fields) -> Medicine:
        AccessPolicy.check_fields(principal, Action.EDIT_MEDICINE, fields.keys())
        try:
            medicine = Medicine.objects.select_for_update().get(pk=medicine_id)
        except Medicine.DoesNotExist:
            raise ResourceNotFoundError(detail='Medicine not found.')

        old_snapshot = AuditService.snapshot(medicine)
        _apply(medicine, fields)
        medicine.full_clean()
        medicine.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Medicine',
            object_id=str(medicine.pk),
            old_values=old_snapshot,
            new_values=AuditService.snapshot(medicine),
        )
        return medicine

    @staticmethod
    @transaction.atomic
    def delete_medicine(*, medicine_id, principal: Principal) -> None:
        """
        Hard delete; batches and alerts go with it. A medicine with recorded
        consumption cannot be deleted: its history is never removed.
        """
        AccessPolicy.check(principal, Action.DELETE_MEDICINE)
        try:
            medicine = Medicine.objects.get(pk=medicine_id)
        except Medicine.DoesNotExist:
            raise ResourceNotFoundError(detail='Medicine not found.')
        if medicine.consumption_records.exists():
            raise BusinessRuleViolation(
                detail=f'{medicine.name} has consumption history and cannot be deleted.',
            )

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_DELETE,
            model_name='Medicine',
            object_id=str(medicine.pk),
            old_values=AuditService.snapshot(medicine),
        )
        medicine.delete()
        logger.info('Medicine %s deleted by %s', medicine_id, principal.role)


class BatchService:
    """Stock receipts and batch maintenance."""

    @staticmethod
    @transaction.atomic
    def create_batch(*, principal: Principal, medicine: Medicine, **fields) -> InventoryBatch:
        AccessPolicy.check_fields(principal, Action.CREATE_BATCH, fields.keys())
        batch_number = fields.get('batch_number', '')
        if InventoryBatch.objects.filter(medicine=medicine, batch_number=batch_number).exists():
            raise DuplicateResourceError(
                detail=f'Batch {batch_number} already exists for {medicine.name}.',
            )

        batch = InventoryBatch(medicine=medicine, **fields)
        batch.full_clean()
        batch.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE,
            model_name='InventoryBatch',
            object_id=str(batch.pk),
            new_values=AuditService.snapshot(batch),
        )
        logger.info(
            'Batch %s received for medicine %s: %d units',
            batch.batch_number, medicine.pk, batch.quantity,
        )
        return batch

    @staticmethod
    @transaction.atomic
    def update_batch(*, batch_id, principal: Principal, **fields) -> InventoryBatch:
        AccessPolicy.check_fields(principal, Action.EDIT_BATCH, fields.keys())
        try:
            batch = InventoryBatch.objects.select_for_update().get(pk=batch_id)
        except InventoryBatch.DoesNotExist:
            raise ResourceNotFoundError(detail='Batch not found.')

        fields.pop('medicine', None)
        new_number = fields.get('batch_number')
        if new_number and new_number != batch.batch_number:
            clash = InventoryBatch.objects.filter(
                medicine_id=batch.medicine_id, batch_number=new_number,
            ).exclude(pk=batch.pk)
            if clash.exists():
                raise DuplicateResourceError(detail=f'Batch {new_number} already exists.')

        old_snapshot = AuditService.snapshot(batch)
        _apply(batch, fields)
        batch.full_clean()
        batch.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='InventoryBatch',
            object_id=str(batch.pk),
            old_values=old_snapshot,
            new_values=AuditService.snapshot(batch),
        )
        return batch

    @staticmethod
    @transaction.atomic
    def delete_batch(*, batch_id, principal: Principal) -> None:
        AccessPolicy.check(principal, Action.DELETE_BATCH)
        try:
            batch = InventoryBatch.objects.get(pk=batch_id)
        except InventoryBatch.DoesNotExist:
            raise ResourceNotFoundError(detail='Batch not found.')

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_DELETE,
            model_name='InventoryBatch',
            object_id=str(batch.pk),
            old_values=AuditService.snapshot(batch),
        )
        batch.delete()


class InventoryService:
    """Read-side aggregates for the inventory dashboard."""

    @staticmethod
    def status_breakdown(today: datetime.date | None = None) -> dict[str, int]:
        today = today or timezone.localdate()
        counts = Counter(
            assess_medicine(medicine, medicine.batches.all(), today).status
            for medicine in Medicine.objects.prefetch_related('batches')
        )
        return {status.value: counts.get(status, 0) for status in StockStatus}

    @staticmethod
    def dashboard_summary(today: datetime.date | None = None) -> dict:
        today = today or timezone.localdate()
        warning_days = engine_setting('EXPIRY_WARNING_DAYS')
        breakdown = InventoryService.status_breakdown(today)

        batches = InventoryBatch.objects.all()
        expiring = batches.expiring_within(warning_days, today)
        value = (
            batches.usable(today)
            .filter(unit_price__isnull=False)
            .aggregate(
                total=Sum(ExpressionWrapper(
                    F('quantity') * F('unit_price'),
                    output_field=DecimalField(max_digits=18, decimal_places=2),
                )),
            )['total']
        )

        return {
            'total_medicines': sum(breakdown.values()),
            'low_stock_count': breakdown[StockStatus.LOW] + breakdown[StockStatus.CRITICAL],
            'expiring_batches': expiring.filter(expiry_date__gte=today).count(),
            'expired_batches': expiring.filter(expiry_date__lt=today).count(),
            'total_stock_value': value or Decimal('0.00'),
            'status_breakdown': breakdown,
            'expiry_warning_days': warning_days,
            'as_of': today,
        }
