"""
Alerts — Test fixtures

@file alerts/tests/conftest.py
"""

import datetime
from unittest.mock import patch

import pytest
from django.utils import timezone

from alerts.notifications import LoggingNotificationDispatcher
from tests.factories import ConsumptionRecordFactory, InventoryBatchFactory, MedicineFactory


@pytest.fixture
def notify_spy():
    """Records every (channel, recipient, message) handed to the dispatcher."""
    with patch.object(LoggingNotificationDispatcher, 'notify') as spy:
        yield spy


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def low_medicine(db, today):
    """80 units on hand against a reorder level of 100, no consumption."""
    medicine = MedicineFactory(name='Paracetamol', reorder_level=100)
    InventoryBatchFactory(medicine=medicine, quantity=80, expiry_date=today + datetime.timedelta(days=365))
    return medicine


@pytest.fixture
def fast_mover(db, today):
    """45 units on hand, consumed at 25 per day for the last eight weeks."""
    medicine = MedicineFactory(name='Amoxicillin', reorder_level=200)
    InventoryBatchFactory(medicine=medicine, quantity=45, expiry_date=today + datetime.timedelta(days=365))
    for day in range(56):
        ConsumptionRecordFactory(
            medicine=medicine, quantity_consumed=25,
            consumption_date=today - datetime.timedelta(days=day),
        )
    return medicine
