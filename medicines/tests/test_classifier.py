"""
Medicines — Stock Classifier Tests

@file medicines/tests/test_classifier.py
"""

import datetime
from types import SimpleNamespace

import pytest

from medicines.classifier import (
    StockStatus,
    StockThresholds,
    assess_medicine,
    classify_status,
    nearest_stocked_expiry,
    on_hand_quantity,
)
from tests.factories import InventoryBatchFactory, MedicineFactory

TODAY = datetime.date(2026, 3, 2)
THRESHOLDS = StockThresholds(reorder_level=100, critical_fraction=0.5)


def batch(quantity, expiry_offset):
    return SimpleNamespace(quantity=quantity, expiry_date=TODAY + datetime.timedelta(days=expiry_offset))


class TestClassifyStatus:
    @pytest.mark.parametrize('quantity, expected', [
        (0, StockStatus.CRITICAL),
        (1, StockStatus.CRITICAL),
        (50, StockStatus.CRITICAL),
        (51, StockStatus.LOW),
        (100, StockStatus.LOW),
        (101, StockStatus.HEALTHY),
        (10_000, StockStatus.HEALTHY),
    ])
    def test_quantity_bands(self, quantity, expected):
        assert classify_status(quantity, THRESHOLDS, today=TODAY) == expected

    def test_expired_wins_over_quantity(self):
        expired = TODAY - datetime.timedelta(days=1)
        assert classify_status(10_000, THRESHOLDS, expired, TODAY) == StockStatus.EXPIRED

    def test_expiring_today_is_not_expired(self):
        assert classify_status(500, THRESHOLDS, TODAY, TODAY) == StockStatus.HEALTHY

    def test_negative_quantity_treated_as_zero(self):
        assert classify_status(-5, THRESHOLDS, today=TODAY) == StockStatus.CRITICAL

    def test_zero_reorder_level(self):
        thresholds = StockThresholds(reorder_level=0)
        assert classify_status(0, thresholds, today=TODAY) == StockStatus.CRITICAL
        assert classify_status(1, thresholds, today=TODAY) == StockStatus.HEALTHY

    @pytest.mark.parametrize('quantity', range(0, 130, 7))
    @pytest.mark.parametrize('expiry_offset', [None, -30, -1, 0, 5, 400])
    def test_total(self, quantity, expiry_offset):
        nearest = None if expiry_offset is None else TODAY + datetime.timedelta(days=expiry_offset)
        assert classify_status(quantity, THRESHOLDS, nearest, TODAY) in set(StockStatus)

    def test_defaults_to_configured_thresholds(self, settings):
        settings.INVENTORY_ENGINE = {'DEFAULT_REORDER_LEVEL': 10, 'CRITICAL_FRACTION': 0.5}
        assert classify_status(8, today=TODAY) == StockStatus.LOW
        assert classify_status(11, today=TODAY) == StockStatus.HEALTHY


class TestBatchHelpers:
    def test_on_hand_excludes_expired(self):
        batches = [batch(10, -1), batch(20, 0), batch(30, 90)]
        assert on_hand_quantity(batches, TODAY) == 50

    def test_nearest_expiry_ignores_empty_batches(self):
        batches = [batch(0, -10), batch(5, 40), batch(5, 20)]
        assert nearest_stocked_expiry(batches) == TODAY + datetime.timedelta(days=20)

    def test_nearest_expiry_none_without_stock(self):
        assert nearest_stocked_expiry([batch(0, 5)]) is None
        assert nearest_stocked_expiry([]) is None


@pytest.mark.django_db
class TestAssessMedicine:
    def test_uses_medicine_thresholds(self):
        medicine = MedicineFactory(reorder_level=40)
        InventoryBatchFactory(medicine=medicine, quantity=30, expiry_date=TODAY + datetime.timedelta(days=200))
        assessment = assess_medicine(medicine, today=TODAY)
        assert assessment.on_hand == 30
        assert assessment.status == StockStatus.LOW
        assert assessment.thresholds.reorder_level == 40

    def test_expired_stocked_batch_marks_medicine_expired(self):
        medicine = MedicineFactory()
        InventoryBatchFactory(medicine=medicine, quantity=500, expiry_date=TODAY + datetime.timedelta(days=200))
        InventoryBatchFactory(medicine=medicine, quantity=5, expiry_date=TODAY - datetime.timedelta(days=3))
        assessment = assess_medicine(medicine, today=TODAY)
        assert assessment.status == StockStatus.EXPIRED
        assert assessment.on_hand == 500

    def test_no_batches_is_critical(self):
        assessment = assess_medicine(MedicineFactory(), today=TODAY)
        assert assessment.on_hand == 0
        assert assessment.nearest_expiry is None
        assert assessment.status == StockStatus.CRITICAL
