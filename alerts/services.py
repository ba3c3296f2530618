"""
Alerts — Alert Engine

Evaluates a medicine's stock and forecast against the alert conditions
and upserts one alert per met condition, keyed by (medicine, alert_type).
Also owns the alert lifecycle: mark read, resolve, dismiss.

Conditions (first column is the alert type):

    stockout        on-hand == 0, or days until stockout <= 14     high
    low_stock       on-hand <= reorder level                      high if critical else medium
    expiry_warning  a stocked batch expires within 30 days        high if <= 7 days else medium
    overstock       on-hand > reorder level and > 26 weeks cover  low

A condition that is no longer met leaves its alert untouched; alerts are
only closed by resolve or dismiss.

@file alerts/services.py
"""

import datetime
import logging
from dataclasses import dataclass
from functools import partial

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.conf import engine_setting
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE, AUDIT_ACTION_STATUS_CHANGE, AUDIT_ACTION_UPDATE
from core.exceptions import ResourceNotFoundError
from core.locks import advisory_xact_lock
from core.services import AuditService
from forecasting.engine import DemandForecast
from forecasting.reorder import ReorderRecommendation
from forecasting.services import ForecastService
from medicines.classifier import StockAssessment, StockStatus, assess_medicine, classify_status
from medicines.models import Medicine
from users.policy import AccessPolicy, Action, Principal

from .models import Alert
from .notifications import notify_alert

logger = logging.getLogger('medistock')


@dataclass(frozen=True)
class AlertCondition:
    alert_type: str
    severity: str
    message: str


@dataclass(frozen=True)
class AlertUpsert:
    alert: Alert
    created: bool
    changed: bool


# ---------------------------------------------------------------------------
# Condition detection (pure)
# ---------------------------------------------------------------------------

def _plural(count: int, word: str) -> str:
    return f'{count} {word}' if count == 1 else f'{count} {word}es'


def detect_conditions(
    medicine,
    batches,
    assessment: StockAssessment,
    demand: DemandForecast,
    reorder: ReorderRecommendation,
    today: datetime.date,
) -> list[AlertCondition]:
    conditions: list[AlertCondition] = []
    on_hand = assessment.on_hand
    reorder_level = assessment.thresholds.reorder_level
    unit = medicine.unit

    stockout_days = engine_setting('STOCKOUT_ALERT_DAYS')
    days = reorder.days_until_stockout
    if on_hand == 0:
        conditions.append(AlertCondition(
            Alert.AlertType.STOCKOUT, Alert.Severity.HIGH,
            f'{medicine.name} is out of stock.',
        ))
    elif days is not None and days <= stockout_days:
        conditions.append(AlertCondition(
            Alert.AlertType.STOCKOUT, Alert.Severity.HIGH,
            f'{medicine.name} will run out in about {days} days '
            f'({on_hand} {unit} left at {demand.weekly_demand:.1f} {unit}/week).',
        ))

    if on_hand <= reorder_level:
        # Severity follows the quantity level alone; expiry has its own alert.
        level = classify_status(on_hand, assessment.thresholds, None, today)
        severity = Alert.Severity.HIGH if level == StockStatus.CRITICAL else Alert.Severity.MEDIUM
        conditions.append(AlertCondition(
            Alert.AlertType.LOW_STOCK, severity,
            f'{medicine.name} stock is low: {on_hand} {unit} on hand '
            f'(reorder level {reorder_level}).',
        ))

    warning_days = engine_setting('EXPIRY_WARNING_DAYS')
    horizon = today + datetime.timedelta(days=warning_days)
    expiring = sorted(
        (batch for batch in batches if batch.quantity > 0 and batch.expiry_date <= horizon),
        key=lambda batch: (batch.expiry_date, batch.batch_number),
    )
    if expiring:
        first = expiring[0]
        days_left = (first.expiry_date - today).days
        severity = (
            Alert.Severity.HIGH if days_left <= engine_setting('EXPIRY_URGENT_DAYS')
            else Alert.Severity.MEDIUM
        )
        units = sum(batch.quantity for batch in expiring)
        if days_left < 0:
            detail = f'batch {first.batch_number} expired on {first.expiry_date.isoformat()}'
        else:
            detail = f'batch {first.batch_number} expires on {first.expiry_date.isoformat()}'
        conditions.append(AlertCondition(
            Alert.AlertType.EXPIRY_WARNING, severity,
            f'{_plural(len(expiring), "batch")} of {medicine.name} ({units} {unit}) '
            f'expire within {warning_days} days; {detail}.',
        ))

    weekly = demand.weekly_demand
    if on_hand > reorder_level and weekly > 0:
        weeks_of_cover = on_hand / weekly
        if weeks_of_cover > engine_setting('OVERSTOCK_WEEKS_OF_COVER'):
            conditions.append(AlertCondition(
                Alert.AlertType.OVERSTOCK, Alert.Severity.LOW,
                f'{medicine.name} is overstocked: {on_hand} {unit} covers '
                f'{int(weeks_of_cover)} weeks of demand.',
            ))

    return conditions


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class AlertEngine:
    """Alert generation, deduplication and lifecycle."""

    @staticmethod
    def evaluate_alerts(medicine: Medicine, today: datetime.date | None = None) -> list[AlertUpsert]:
        """
        Upsert one alert per condition currently met by ``medicine``.

        Idempotent: running it twice on unchanged data creates nothing new
        and sends no second notification.
        """
        today = today or timezone.localdate()
        batches = list(medicine.batches.all())
        assessment = assess_medicine(medicine, batches, today)
        demand = ForecastService.demand(medicine, engine_setting('DEFAULT_FORECAST_WEEKS'), today)
        reorder = ForecastService.recommendation(assessment.on_hand, medicine.safety_stock, demand)

        conditions = detect_conditions(medicine, batches, assessment, demand, reorder, today)
        return [AlertEngine._upsert(medicine, condition) for condition in conditions]

    @staticmethod
    @transaction.atomic
    def _upsert(medicine: Medicine, condition: AlertCondition) -> AlertUpsert:
        advisory_xact_lock('alert', medicine.pk, condition.alert_type)
        open_alerts = Alert.objects.select_for_update().filter(
            medicine=medicine, alert_type=condition.alert_type, is_resolved=False,
        )

        alert = open_alerts.first()
        created = False
        if alert is None:
            try:
                with transaction.atomic():
                    alert = Alert.objects.create(
                        medicine=medicine,
                        alert_type=condition.alert_type,
                        severity=condition.severity,
                        message=condition.message,
                    )
                created = True
            except IntegrityError:
                # Lost the race to a concurrent evaluation; fall through to update.
                alert = open_alerts.get()

        if created:
            changed = True
            AuditService.log(
                actor=None,
                action=AUDIT_ACTION_CREATE,
                model_name='Alert',
                object_id=str(alert.pk),
                new_values={'alert_type': alert.alert_type, 'severity': alert.severity},
            )
            logger.info('Alert %s raised: %s/%s', alert.pk, alert.alert_type, alert.severity)
        else:
            changed = alert.severity != condition.severity or alert.message != condition.message
            old_values = {'severity': alert.severity, 'message': alert.message}
            alert.severity = condition.severity
            alert.message = condition.message
            alert.save(update_fields=['severity', 'message', 'updated_at'])
            if changed:
                AuditService.log(
                    actor=None,
                    action=AUDIT_ACTION_UPDATE,
                    model_name='Alert',
                    object_id=str(alert.pk),
                    old_values=old_values,
                    new_values={'severity': alert.severity, 'message': alert.message},
                )

        if changed:
            transaction.on_commit(partial(AlertEngine._notify, alert.pk))
        return AlertUpsert(alert=alert, created=created, changed=changed)

    @staticmethod
    def _notify(alert_id) -> None:
        try:
            alert = Alert.objects.get(pk=alert_id)
        except Alert.DoesNotExist:
            return
        notify_alert(alert)

    @staticmethod
    def evaluate_medicine_id(medicine_id, today: datetime.date | None = None) -> list[AlertUpsert]:
        try:
            medicine = Medicine.objects.prefetch_related('batches').get(pk=medicine_id)
        except Medicine.DoesNotExist:
            raise ResourceNotFoundError(detail='Medicine not found.')
        return AlertEngine.evaluate_alerts(medicine, today)

    @staticmethod
    def evaluate_many(medicine_ids, today: datetime.date | None = None) -> dict:
        """
        Evaluate each medicine independently. A failure is logged and
        counted; it never stops the rest of the batch.
        """
        summary = {'evaluated': 0, 'failed': 0, 'created': 0, 'updated': 0}
        for medicine_id in medicine_ids:
            try:
                upserts = AlertEngine.evaluate_medicine_id(medicine_id, today)
            except Exception:
                logger.exception('Alert evaluation failed for medicine %s', medicine_id)
                summary['failed'] += 1
                continue
            summary['evaluated'] += 1
            summary['created'] += sum(1 for upsert in upserts if upsert.created)
            summary['updated'] += sum(1 for upsert in upserts if upsert.changed and not upsert.created)
        return summary

    @staticmethod
    def request_evaluation(*, principal: Principal, medicine_id=None) -> dict:
        """Entry point for the API: one medicine synchronously, or all via Celery."""
        AccessPolicy.check(principal, Action.EVALUATE_ALERTS)
        if medicine_id is not None:
            upserts = AlertEngine.evaluate_medicine_id(medicine_id)
            return {
                'medicine_id': str(medicine_id),
                'alerts': [upsert.alert for upsert in upserts],
                'created': sum(1 for upsert in upserts if upsert.created),
            }

        from .tasks import evaluate_all_alerts_task

        evaluate_all_alerts_task.delay()
        return {'queued': True}

    # --- Lifecycle ---

    @staticmethod
    def _get(alert_id, *, lock: bool = False) -> Alert:
        qs = Alert.objects.select_for_update() if lock else Alert.objects.all()
        try:
            return qs.select_related('medicine').get(pk=alert_id)
        except Alert.DoesNotExist:
            raise ResourceNotFoundError(detail='Alert not found.')

    @staticmethod
    @transaction.atomic
    def mark_read(*, alert_id, principal: Principal) -> Alert:
        AccessPolicy.check(principal, Action.MARK_ALERT_READ)
        alert = AlertEngine._get(alert_id, lock=True)
        if not alert.is_read:
            alert.is_read = True
            alert.save(update_fields=['is_read', 'updated_at'])
        return alert

    @staticmethod
    @transaction.atomic
    def mark_all_read(*, principal: Principal) -> int:
        AccessPolicy.check(principal, Action.MARK_ALERT_READ)
        return Alert.objects.unread().update(is_read=True, updated_at=timezone.now())

    @staticmethod
    @transaction.atomic
    def resolve(*, alert_id, principal: Principal) -> Alert:
        AccessPolicy.check(principal, Action.RESOLVE_ALERT)
        alert = AlertEngine._get(alert_id, lock=True)
        if alert.is_resolved:
            return alert

        alert.mark_resolved()
        alert.save(update_fields=['is_resolved', 'resolved_at', 'updated_at'])
        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='Alert',
            object_id=str(alert.pk),
            old_values={'is_resolved': False},
            new_values={'is_resolved': True, 'resolved_at': alert.resolved_at.isoformat()},
        )
        logger.info('Alert %s resolved by %s', alert.pk, principal.role)
        return alert

    @staticmethod
    @transaction.atomic
    def dismiss(*, alert_id, principal: Principal) -> None:
        """Hard delete. Irreversible; the alert is gone afterwards."""
        AccessPolicy.check(principal, Action.DISMISS_ALERT)
        alert = AlertEngine._get(alert_id, lock=True)
        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_DELETE,
            model_name='Alert',
            object_id=str(alert.pk),
            old_values={
                'medicine_id': str(alert.medicine_id),
                'alert_type': alert.alert_type,
                'severity': alert.severity,
                'message': alert.message,
                'state': alert.state,
            },
        )
        alert.delete()
        logger.info('Alert %s dismissed by %s', alert_id, principal.role)
