"""
Stock — Service Layer

Consumption history: recording stock-out events, corrections, and the
weekly series read by the forecast. Stock-outs decrement batches
first-expiry-first-out under row locks and an advisory lock per medicine.
INSERT ONLY — never update or delete ConsumptionRecord.

@file stock/services.py
"""

import datetime
import logging

from django.db import transaction
from django.db.models import F, Min, Sum
from django.utils import timezone

from core.conf import engine_setting
from core.constants import AUDIT_ACTION_CREATE
from core.exceptions import BusinessRuleViolation, InsufficientStockError, ResourceNotFoundError
from core.locks import advisory_xact_lock
from core.services import AuditService
from medicines.models import InventoryBatch, Medicine
from users.policy import AccessPolicy, Action, Principal

from .aggregation import PERIOD_DAYS, ConsumptionSeries, aggregate_weekly
from .models import ConsumptionRecord

logger = logging.getLogger('medistock')


def _get_medicine(medicine_id) -> Medicine:
    try:
        return Medicine.objects.get(pk=medicine_id)
    except Medicine.DoesNotExist:
        raise ResourceNotFoundError(detail='Medicine not found.')


class ConsumptionService:
    """Stock-out recording and consumption history reads."""

    @staticmethod
    @transaction.atomic
    def record_consumption(
        *,
        medicine_id,
        quantity: int,
        principal: Principal,
        consumption_date: datetime.date | None = None,
        notes: str = '',
    ) -> ConsumptionRecord:
        """
        Take ``quantity`` units out of stock and append a consumption record.

        Batches are drawn first-expiry-first-out; expired batches are never
        drawn. Raises InsufficientStockError when usable stock is short.
        """
        AccessPolicy.check(principal, Action.RECORD_CONSUMPTION)
        if quantity <= 0:
            raise BusinessRuleViolation(detail='Quantity must be positive.')

        today = timezone.localdate()
        consumption_date = consumption_date or today
        if consumption_date > today:
            raise BusinessRuleViolation(detail='Consumption date cannot be in the future.')

        medicine = _get_medicine(medicine_id)
        advisory_xact_lock('consumption', medicine.pk)

        batches = list(
            InventoryBatch.objects.select_for_update()
            .filter(medicine=medicine)
            .usable(today)
            .in_stock()
            .first_expiry_first_out()
        )
        available = sum(batch.quantity for batch in batches)
        if available < quantity:
            raise InsufficientStockError(
                detail=f'Insufficient stock: available={available}, requested={quantity}.',
            )

        remaining = quantity
        drawn = []
        for batch in batches:
            if remaining == 0:
                break
            take = min(batch.quantity, remaining)
            InventoryBatch.objects.filter(pk=batch.pk).update(
                quantity=F('quantity') - take, updated_at=timezone.now(),
            )
            drawn.append({'batch': batch.batch_number, 'quantity': take})
            remaining -= take

        record = ConsumptionRecord(
            medicine=medicine,
            consumption_date=consumption_date,
            quantity_consumed=quantity,
            notes=notes,
            recorded_by=principal.actor,
        )
        record.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE,
            model_name='ConsumptionRecord',
            object_id=str(record.pk),
            new_values={
                'medicine_id': str(medicine.pk),
                'consumption_date': consumption_date.isoformat(),
                'quantity_consumed': quantity,
                'batches': drawn,
            },
        )
        logger.info(
            'Consumption %s recorded: medicine=%s qty=%s batches=%s',
            record.pk, medicine.pk, quantity, len(drawn),
        )
        return record

    @staticmethod
    @transaction.atomic
    def record_correction(
        *,
        record_id,
        corrected_quantity: int,
        principal: Principal,
        notes: str = '',
    ) -> ConsumptionRecord:
        """
        Append a correction so the record's net quantity becomes ``corrected_quantity``.

        The correction is dated like the original so it nets against the
        same period. Batch quantities are not touched.
        """
        AccessPolicy.check(principal, Action.RECORD_CONSUMPTION)
        if corrected_quantity < 0:
            raise BusinessRuleViolation(detail='Corrected quantity cannot be negative.')

        try:
            original = ConsumptionRecord.objects.select_related('medicine').get(pk=record_id)
        except ConsumptionRecord.DoesNotExist:
            raise ResourceNotFoundError(detail='Consumption record not found.')
        if original.is_correction:
            raise BusinessRuleViolation(detail='Correct the original record, not a correction.')

        advisory_xact_lock('consumption', original.medicine_id)
        already = original.corrections.aggregate(total=Sum('quantity_consumed'))['total'] or 0
        delta = corrected_quantity - (original.quantity_consumed + already)
        if delta == 0:
            raise BusinessRuleViolation(detail='Record already has this quantity.')

        correction = ConsumptionRecord(
            medicine=original.medicine,
            consumption_date=original.consumption_date,
            quantity_consumed=delta,
            notes=notes or f'Correction of {original.pk}',
            corrects=original,
            recorded_by=principal.actor,
        )
        correction.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE,
            model_name='ConsumptionRecord',
            object_id=str(correction.pk),
            old_values={'quantity_consumed': original.quantity_consumed + already},
            new_values={
                'corrects': str(original.pk),
                'quantity_consumed': corrected_quantity,
                'delta': delta,
            },
        )
        logger.info('Consumption %s corrected by %s (delta=%s)', original.pk, correction.pk, delta)
        return correction

    @staticmethod
    def weekly_series(
        medicine,
        weeks: int | None = None,
        as_of: datetime.date | None = None,
    ) -> ConsumptionSeries:
        """Weekly consumption of ``medicine`` for the last ``weeks`` periods."""
        weeks = weeks or engine_setting('HISTORY_WEEKS')
        as_of = as_of or timezone.localdate()
        window_start = as_of - datetime.timedelta(days=weeks * PERIOD_DAYS - 1)

        records = ConsumptionRecord.objects.filter(medicine=medicine)
        history_start = records.filter(consumption_date__lte=as_of).aggregate(
            first=Min('consumption_date'),
        )['first']
        window = records.filter(
            consumption_date__gte=window_start, consumption_date__lte=as_of,
        ).values_list('consumption_date', 'quantity_consumed')
        return aggregate_weekly(list(window), weeks, as_of, history_start=history_start)
