"""
Alerts — Task and Signal Tests

Celery runs eagerly in tests; ``on_commit`` callbacks are captured and
executed explicitly.

@file alerts/tests/test_tasks.py
"""

import datetime

import pytest
from django.utils import timezone

from alerts.models import Alert
from alerts.tasks import (
    chunked,
    daily_inventory_summary_task,
    evaluate_all_alerts_task,
    evaluate_medicine_alerts_task,
    send_notification_task,
)
from medicines.models import InventoryBatch
from stock.services import ConsumptionService
from tests.factories import InventoryBatchFactory, MedicineFactory, NotificationPreferenceFactory
from users.policy import ROLE_STORE_MANAGER, Principal

pytestmark = pytest.mark.django_db


def test_chunked():
    assert chunked(['a', 'b', 'c'], 2) == [['a', 'b'], ['c']]
    assert chunked([], 50) == []


class TestEvaluationTasks:

    def test_evaluate_medicine(self, low_medicine):
        summary = evaluate_medicine_alerts_task(str(low_medicine.pk))
        assert summary == {'evaluated': 1, 'failed': 0, 'created': 1, 'updated': 0}

    def test_evaluate_all_in_chunks(self, settings, low_medicine, fast_mover):
        settings.INVENTORY_ENGINE = {'EVALUATION_CHUNK_SIZE': 1}
        result = evaluate_all_alerts_task()
        assert result == {'medicines': 2, 'chunks': 2}
        assert Alert.objects.filter(medicine=low_medicine).count() == 1
        assert Alert.objects.filter(medicine=fast_mover).count() == 2

    def test_evaluate_all_without_medicines(self):
        assert evaluate_all_alerts_task() == {'medicines': 0, 'chunks': 0}


class TestNotificationTasks:

    def test_send_notification(self, mailoutbox):
        send_notification_task('email', 'manager@medistock.test', 'Insulin is out of stock.')
        assert mailoutbox[0].to == ['manager@medistock.test']

    def test_daily_summary_sent_to_opted_in(self, pharmacy_manager, low_medicine, notify_spy):
        NotificationPreferenceFactory(user=pharmacy_manager, daily_summary=True)
        assert daily_inventory_summary_task() == {'sent': 1}
        message = notify_spy.call_args.args[2]
        assert 'Daily inventory summary' in message
        assert 'Medicines: 1' in message
        assert 'Low or critical stock: 1' in message

    def test_daily_summary_nobody_opted_in(self, pharmacy_manager, notify_spy):
        assert daily_inventory_summary_task() == {'sent': 0}
        notify_spy.assert_not_called()


class TestSignals:

    def test_new_batch_triggers_evaluation(self, django_capture_on_commit_callbacks):
        medicine = MedicineFactory(reorder_level=100)
        with django_capture_on_commit_callbacks(execute=True):
            InventoryBatchFactory(medicine=medicine, quantity=20)
        alert = Alert.objects.get(medicine=medicine, alert_type='low_stock')
        assert alert.severity == 'high'

    def test_no_evaluation_before_commit(self):
        medicine = MedicineFactory(reorder_level=100)
        InventoryBatchFactory(medicine=medicine, quantity=20)
        assert not Alert.objects.exists()

    def test_consumption_triggers_evaluation(self, low_medicine, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            ConsumptionService.record_consumption(
                principal=Principal(role=ROLE_STORE_MANAGER),
                medicine_id=low_medicine.pk,
                quantity=60,
                consumption_date=timezone.localdate(),
            )
        assert Alert.objects.filter(medicine=low_medicine, alert_type='low_stock').exists()

    def test_batch_delete_triggers_evaluation(self, django_capture_on_commit_callbacks):
        medicine = MedicineFactory(reorder_level=100)
        batch = InventoryBatchFactory(medicine=medicine, quantity=500)
        InventoryBatchFactory(
            medicine=medicine, quantity=40,
            expiry_date=timezone.localdate() + datetime.timedelta(days=200),
        )
        with django_capture_on_commit_callbacks(execute=True):
            InventoryBatch.objects.get(pk=batch.pk).delete()
        assert Alert.objects.get(medicine=medicine).alert_type == 'low_stock'

    def test_medicine_delete_skips_evaluation(self, low_medicine, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            low_medicine.delete()
        assert callbacks == []
