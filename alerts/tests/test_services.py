"""
Alerts — Alert Engine Tests

Condition detection, idempotent upserts, notifications on change and the
alert lifecycle.

@file alerts/tests/test_services.py
"""

import datetime
import uuid

import pytest

from alerts.models import Alert
from alerts.services import AlertEngine
from core.exceptions import AccessDenied, ResourceNotFoundError
from core.models import AuditLog
from medicines.models import InventoryBatch
from tests.factories import AlertFactory, ConsumptionRecordFactory, InventoryBatchFactory, MedicineFactory
from users.policy import ROLE_PHARMACY_MANAGER, ROLE_STORE_MANAGER, Principal

pytestmark = pytest.mark.django_db

MANAGER = Principal(role=ROLE_PHARMACY_MANAGER)
STORE = Principal(role=ROLE_STORE_MANAGER)


def alert_types(medicine):
    return {
        alert.alert_type: alert.severity
        for alert in Alert.objects.filter(medicine=medicine, is_resolved=False)
    }


class TestConditions:

    def test_fast_mover_raises_high_stockout(self, fast_mover, today):
        AlertEngine.evaluate_alerts(fast_mover, today)
        assert alert_types(fast_mover) == {'stockout': 'high', 'low_stock': 'high'}
        message = Alert.objects.get(medicine=fast_mover, alert_type='stockout').message
        assert 'will run out in about' in message

    def test_low_stock_medium(self, low_medicine, today):
        AlertEngine.evaluate_alerts(low_medicine, today)
        assert alert_types(low_medicine) == {'low_stock': 'medium'}

    def test_empty_medicine_is_out_of_stock(self, today):
        medicine = MedicineFactory(name='Insulin')
        AlertEngine.evaluate_alerts(medicine, today)
        assert alert_types(medicine) == {'stockout': 'high', 'low_stock': 'high'}
        assert Alert.objects.get(medicine=medicine, alert_type='stockout').message == 'Insulin is out of stock.'

    def test_healthy_medicine_raises_nothing(self, today):
        medicine = MedicineFactory(reorder_level=100)
        InventoryBatchFactory(medicine=medicine, quantity=500, expiry_date=today + datetime.timedelta(days=365))
        assert AlertEngine.evaluate_alerts(medicine, today) == []
        assert not Alert.objects.exists()

    @pytest.mark.parametrize('days_left, severity', [(-2, 'high'), (0, 'high'), (7, 'high'), (8, 'medium'), (30, 'medium')])
    def test_expiry_warning(self, today, days_left, severity):
        medicine = MedicineFactory(reorder_level=10)
        InventoryBatchFactory(medicine=medicine, quantity=500, expiry_date=today + datetime.timedelta(days=365))
        InventoryBatchFactory(medicine=medicine, quantity=20, expiry_date=today + datetime.timedelta(days=days_left))
        AlertEngine.evaluate_alerts(medicine, today)
        assert alert_types(medicine)['expiry_warning'] == severity

    def test_empty_expiring_batch_ignored(self, today):
        medicine = MedicineFactory(reorder_level=10)
        InventoryBatchFactory(medicine=medicine, quantity=500, expiry_date=today + datetime.timedelta(days=365))
        InventoryBatchFactory(medicine=medicine, quantity=0, expiry_date=today + datetime.timedelta(days=3))
        AlertEngine.evaluate_alerts(medicine, today)
        assert 'expiry_warning' not in alert_types(medicine)

    def test_overstock(self, today):
        medicine = MedicineFactory(reorder_level=100)
        InventoryBatchFactory(medicine=medicine, quantity=5000, expiry_date=today + datetime.timedelta(days=700))
        for week in range(12):
            ConsumptionRecordFactory(
                medicine=medicine, quantity_consumed=50,
                consumption_date=today - datetime.timedelta(days=7 * week),
            )
        AlertEngine.evaluate_alerts(medicine, today)
        assert alert_types(medicine) == {'overstock': 'low'}


class TestUpsert:

    def test_evaluate_is_idempotent(self, fast_mover, today):
        first = AlertEngine.evaluate_alerts(fast_mover, today)
        second = AlertEngine.evaluate_alerts(fast_mover, today)

        assert all(upsert.created for upsert in first)
        assert not any(upsert.created or upsert.changed for upsert in second)
        assert Alert.objects.filter(medicine=fast_mover).count() == 2
        assert {u.alert.pk for u in first} == {u.alert.pk for u in second}

    def test_worsened_stock_updates_existing_alert(self, low_medicine, today):
        [first] = AlertEngine.evaluate_alerts(low_medicine, today)
        assert first.alert.severity == 'medium'

        InventoryBatch.objects.filter(medicine=low_medicine).update(quantity=30)
        upserts = AlertEngine.evaluate_alerts(low_medicine, today)

        low = next(u for u in upserts if u.alert.alert_type == 'low_stock')
        assert low.alert.pk == first.alert.pk
        assert low.changed and not low.created
        assert low.alert.severity == 'high'
        assert '30' in low.alert.message
        assert Alert.objects.filter(medicine=low_medicine, alert_type='low_stock').count() == 1
        assert AuditLog.objects.filter(model_name='Alert', action='UPDATE', object_id=str(first.alert.pk)).exists()

    def test_read_state_kept_on_update(self, low_medicine, today):
        [first] = AlertEngine.evaluate_alerts(low_medicine, today)
        AlertEngine.mark_read(alert_id=first.alert.pk, principal=STORE)
        InventoryBatch.objects.filter(medicine=low_medicine).update(quantity=30)
        AlertEngine.evaluate_alerts(low_medicine, today)
        assert Alert.objects.get(pk=first.alert.pk).is_read is True

    def test_recovered_condition_is_not_auto_resolved(self, low_medicine, today):
        [first] = AlertEngine.evaluate_alerts(low_medicine, today)
        InventoryBatch.objects.filter(medicine=low_medicine).update(quantity=1000)
        assert AlertEngine.evaluate_alerts(low_medicine, today) == []
        first.alert.refresh_from_db()
        assert first.alert.is_resolved is False

    def test_new_alert_after_resolve(self, low_medicine, today):
        [first] = AlertEngine.evaluate_alerts(low_medicine, today)
        AlertEngine.resolve(alert_id=first.alert.pk, principal=MANAGER)
        [second] = AlertEngine.evaluate_alerts(low_medicine, today)
        assert second.created
        assert second.alert.pk != first.alert.pk
        assert Alert.objects.filter(medicine=low_medicine).count() == 2


class TestNotifications:

    def test_notified_once_on_creation(self, low_medicine, pharmacy_manager, today,
                                       notify_spy, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            AlertEngine.evaluate_alerts(low_medicine, today)
        notify_spy.assert_called_once()
        channel, recipient, message = notify_spy.call_args.args
        assert (channel, recipient) == ('email', pharmacy_manager.email)
        assert 'Paracetamol stock is low' in message

        with django_capture_on_commit_callbacks(execute=True):
            AlertEngine.evaluate_alerts(low_medicine, today)
        assert notify_spy.call_count == 1

    def test_notified_again_when_severity_changes(self, low_medicine, pharmacy_manager, today,
                                                  notify_spy, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            AlertEngine.evaluate_alerts(low_medicine, today)
        InventoryBatch.objects.filter(medicine=low_medicine).update(quantity=30)
        with django_capture_on_commit_callbacks(execute=True):
            AlertEngine.evaluate_alerts(low_medicine, today)
        assert notify_spy.call_count == 2

    def test_nothing_sent_before_commit(self, low_medicine, pharmacy_manager, today, notify_spy):
        AlertEngine.evaluate_alerts(low_medicine, today)
        notify_spy.assert_not_called()

    def test_dispatch_failure_is_swallowed(self, low_medicine, pharmacy_manager, today,
                                           notify_spy, django_capture_on_commit_callbacks):
        notify_spy.side_effect = ConnectionError('gateway down')
        with django_capture_on_commit_callbacks(execute=True):
            upserts = AlertEngine.evaluate_alerts(low_medicine, today)
        assert upserts[0].created
        assert Alert.objects.filter(medicine=low_medicine).exists()


class TestEvaluateMany:

    def test_failures_are_isolated(self, low_medicine, fast_mover, today):
        summary = AlertEngine.evaluate_many([low_medicine.pk, uuid.uuid4(), fast_mover.pk], today)
        assert summary == {'evaluated': 2, 'failed': 1, 'created': 3, 'updated': 0}

    def test_request_evaluation_single(self, low_medicine):
        result = AlertEngine.request_evaluation(principal=MANAGER, medicine_id=low_medicine.pk)
        assert result['created'] == 1
        assert [alert.alert_type for alert in result['alerts']] == ['low_stock']

    def test_request_evaluation_requires_capability(self, low_medicine):
        with pytest.raises(AccessDenied):
            AlertEngine.request_evaluation(principal=STORE, medicine_id=low_medicine.pk)


class TestLifecycle:

    def test_mark_read_idempotent(self):
        alert = AlertFactory()
        AlertEngine.mark_read(alert_id=alert.pk, principal=STORE)
        again = AlertEngine.mark_read(alert_id=alert.pk, principal=STORE)
        assert again.is_read is True
        assert again.state == 'open_read'

    def test_mark_all_read(self):
        AlertFactory.create_batch(2)
        AlertFactory(is_resolved=True)
        assert AlertEngine.mark_all_read(principal=STORE) == 2
        assert not Alert.objects.unread().exists()

    def test_resolve_idempotent(self):
        alert = AlertFactory()
        resolved = AlertEngine.resolve(alert_id=alert.pk, principal=MANAGER)
        stamp = resolved.resolved_at
        again = AlertEngine.resolve(alert_id=alert.pk, principal=MANAGER)
        assert again.is_resolved is True
        assert again.resolved_at == stamp
        assert AuditLog.objects.filter(model_name='Alert', action='STATUS_CHANGE').count() == 1

    def test_store_manager_cannot_resolve(self):
        alert = AlertFactory()
        with pytest.raises(AccessDenied):
            AlertEngine.resolve(alert_id=alert.pk, principal=STORE)

    def test_dismiss_is_permanent(self):
        alert = AlertFactory()
        AlertEngine.dismiss(alert_id=alert.pk, principal=MANAGER)
        assert not Alert.objects.filter(pk=alert.pk).exists()
        with pytest.raises(ResourceNotFoundError):
            AlertEngine.dismiss(alert_id=alert.pk, principal=MANAGER)
        with pytest.raises(ResourceNotFoundError):
            AlertEngine.mark_read(alert_id=alert.pk, principal=MANAGER)
        log = AuditLog.objects.get(model_name='Alert', action='DELETE')
        assert log.old_values['state'] == 'open_unread'

    def test_dismiss_resolved_alert(self):
        alert = AlertFactory(is_resolved=True)
        AlertEngine.dismiss(alert_id=alert.pk, principal=MANAGER)
        assert not Alert.objects.filter(pk=alert.pk).exists()
