"""
Stock — Service Layer Tests

Stock-outs drawn first-expiry-first-out, corrections and the weekly series.

@file stock/tests/test_services.py
"""

import datetime
import uuid

import pytest
from django.utils import timezone

from core.exceptions import (
    AccessDenied,
    BusinessRuleViolation,
    InsufficientStockError,
    ResourceNotFoundError,
)
from core.models import AuditLog
from stock.models import ConsumptionRecord
from stock.services import ConsumptionService
from tests.factories import ConsumptionRecordFactory, InventoryBatchFactory, MedicineFactory
from users.policy import ROLE_NONE, ROLE_STORE_MANAGER, Principal

pytestmark = pytest.mark.django_db

STORE = Principal(role=ROLE_STORE_MANAGER)


def days_from_today(days):
    return timezone.localdate() + datetime.timedelta(days=days)


class TestRecordConsumption:

    def test_draws_first_expiry_first_out(self):
        medicine = MedicineFactory()
        late = InventoryBatchFactory(medicine=medicine, quantity=100, expiry_date=days_from_today(200))
        early = InventoryBatchFactory(medicine=medicine, quantity=30, expiry_date=days_from_today(20))

        record = ConsumptionService.record_consumption(medicine_id=medicine.pk, quantity=50, principal=STORE)

        early.refresh_from_db()
        late.refresh_from_db()
        assert early.quantity == 0
        assert late.quantity == 80
        assert record.quantity_consumed == 50
        assert record.consumption_date == timezone.localdate()

    def test_expired_batches_never_drawn(self):
        medicine = MedicineFactory()
        expired = InventoryBatchFactory(medicine=medicine, quantity=500, expiry_date=days_from_today(-1))
        InventoryBatchFactory(medicine=medicine, quantity=10, expiry_date=days_from_today(30))

        with pytest.raises(InsufficientStockError):
            ConsumptionService.record_consumption(medicine_id=medicine.pk, quantity=11, principal=STORE)

        expired.refresh_from_db()
        assert expired.quantity == 500
        assert not ConsumptionRecord.objects.exists()

    def test_exact_stock_allowed(self):
        medicine = MedicineFactory()
        batch = InventoryBatchFactory(medicine=medicine, quantity=10, expiry_date=days_from_today(5))
        ConsumptionService.record_consumption(medicine_id=medicine.pk, quantity=10, principal=STORE)
        batch.refresh_from_db()
        assert batch.quantity == 0

    def test_audit_lists_batches_drawn(self):
        medicine = MedicineFactory()
        InventoryBatchFactory(medicine=medicine, batch_number='A', quantity=5, expiry_date=days_from_today(5))
        InventoryBatchFactory(medicine=medicine, batch_number='B', quantity=5, expiry_date=days_from_today(9))

        record = ConsumptionService.record_consumption(medicine_id=medicine.pk, quantity=7, principal=STORE)

        log = AuditLog.objects.get(model_name='ConsumptionRecord', object_id=str(record.pk))
        assert log.new_values['batches'] == [
            {'batch': 'A', 'quantity': 5},
            {'batch': 'B', 'quantity': 2},
        ]

    def test_backdated_consumption(self):
        medicine = MedicineFactory()
        InventoryBatchFactory(medicine=medicine, quantity=10)
        record = ConsumptionService.record_consumption(
            medicine_id=medicine.pk, quantity=3, principal=STORE,
            consumption_date=days_from_today(-4),
        )
        assert record.consumption_date == days_from_today(-4)

    @pytest.mark.parametrize('quantity', [0, -5])
    def test_quantity_must_be_positive(self, quantity):
        medicine = MedicineFactory()
        with pytest.raises(BusinessRuleViolation):
            ConsumptionService.record_consumption(medicine_id=medicine.pk, quantity=quantity, principal=STORE)

    def test_future_date_rejected(self):
        medicine = MedicineFactory()
        InventoryBatchFactory(medicine=medicine)
        with pytest.raises(BusinessRuleViolation):
            ConsumptionService.record_consumption(
                medicine_id=medicine.pk, quantity=1, principal=STORE,
                consumption_date=days_from_today(1),
            )

    def test_unknown_medicine(self):
        with pytest.raises(ResourceNotFoundError):
            ConsumptionService.record_consumption(medicine_id=uuid.uuid4(), quantity=1, principal=STORE)

    def test_no_role_denied(self):
        medicine = MedicineFactory()
        InventoryBatchFactory(medicine=medicine)
        with pytest.raises(AccessDenied):
            ConsumptionService.record_consumption(
                medicine_id=medicine.pk, quantity=1, principal=Principal(role=ROLE_NONE),
            )


class TestRecordCorrection:

    def test_correction_nets_to_corrected_quantity(self):
        original = ConsumptionRecordFactory(quantity_consumed=40)
        correction = ConsumptionService.record_correction(
            record_id=original.pk, corrected_quantity=25, principal=STORE,
        )
        assert correction.quantity_consumed == -15
        assert correction.corrects == original
        assert correction.consumption_date == original.consumption_date

    def test_second_correction_uses_net_quantity(self):
        original = ConsumptionRecordFactory(quantity_consumed=40)
        ConsumptionService.record_correction(record_id=original.pk, corrected_quantity=25, principal=STORE)
        second = ConsumptionService.record_correction(record_id=original.pk, corrected_quantity=30, principal=STORE)
        assert second.quantity_consumed == 5

    def test_batches_untouched(self):
        medicine = MedicineFactory()
        batch = InventoryBatchFactory(medicine=medicine, quantity=77)
        original = ConsumptionRecordFactory(medicine=medicine, quantity_consumed=10)
        ConsumptionService.record_correction(record_id=original.pk, corrected_quantity=2, principal=STORE)
        batch.refresh_from_db()
        assert batch.quantity == 77

    def test_cannot_correct_a_correction(self):
        original = ConsumptionRecordFactory(quantity_consumed=10)
        correction = ConsumptionService.record_correction(
            record_id=original.pk, corrected_quantity=5, principal=STORE,
        )
        with pytest.raises(BusinessRuleViolation):
            ConsumptionService.record_correction(record_id=correction.pk, corrected_quantity=1, principal=STORE)

    def test_no_op_correction_rejected(self):
        original = ConsumptionRecordFactory(quantity_consumed=10)
        with pytest.raises(BusinessRuleViolation):
            ConsumptionService.record_correction(record_id=original.pk, corrected_quantity=10, principal=STORE)

    def test_negative_corrected_quantity_rejected(self):
        original = ConsumptionRecordFactory(quantity_consumed=10)
        with pytest.raises(BusinessRuleViolation):
            ConsumptionService.record_correction(record_id=original.pk, corrected_quantity=-1, principal=STORE)

    def test_missing_record(self):
        with pytest.raises(ResourceNotFoundError):
            ConsumptionService.record_correction(record_id=uuid.uuid4(), corrected_quantity=1, principal=STORE)


class TestWeeklySeries:

    def test_series_from_history(self):
        medicine = MedicineFactory()
        as_of = datetime.date(2026, 3, 1)
        for day in range(14):
            ConsumptionRecordFactory(
                medicine=medicine, quantity_consumed=3,
                consumption_date=as_of - datetime.timedelta(days=day),
            )
        series = ConsumptionService.weekly_series(medicine, weeks=4, as_of=as_of)
        assert series.quantities == [21, 21]
        assert series.has_full_period

    def test_old_history_keeps_full_window(self):
        medicine = MedicineFactory()
        as_of = datetime.date(2026, 3, 1)
        ConsumptionRecordFactory(medicine=medicine, consumption_date=as_of - datetime.timedelta(days=200))
        ConsumptionRecordFactory(medicine=medicine, quantity_consumed=8, consumption_date=as_of)
        series = ConsumptionService.weekly_series(medicine, weeks=4, as_of=as_of)
        assert series.quantities == [0, 0, 0, 8]

    def test_other_medicines_excluded(self):
        medicine = MedicineFactory()
        ConsumptionRecordFactory(quantity_consumed=99, consumption_date=datetime.date(2026, 2, 28))
        series = ConsumptionService.weekly_series(medicine, weeks=4, as_of=datetime.date(2026, 3, 1))
        assert series.total == 0
        assert series.has_full_period is False
