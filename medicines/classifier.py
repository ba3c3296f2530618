"""
Medicines — Stock Status Classifier

Turns raw stock figures into a severity level. ``classify_status`` is a
pure, total function: every input combination maps to exactly one status,
checked in order (first match wins):

  1. expired   nearest expiry among batches still holding stock < today
  2. critical  quantity == 0, or quantity <= reorder_level * critical_fraction
  3. low       quantity <= reorder_level
  4. healthy   otherwise

@file medicines/classifier.py
"""

import datetime
from dataclasses import dataclass
from typing import Iterable

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.conf import engine_setting


class StockStatus(models.TextChoices):
    HEALTHY = 'healthy', _('Healthy')
    LOW = 'low', _('Low')
    CRITICAL = 'critical', _('Critical')
    EXPIRED = 'expired', _('Expired')


@dataclass(frozen=True)
class StockThresholds:
    reorder_level: int
    critical_fraction: float = 0.5

    @classmethod
    def for_medicine(cls, medicine=None) -> 'StockThresholds':
        """Thresholds from the medicine, falling back to the configured defaults."""
        reorder_level = getattr(medicine, 'reorder_level', None)
        if reorder_level is None:
            reorder_level = engine_setting('DEFAULT_REORDER_LEVEL')
        return cls(
            reorder_level=reorder_level,
            critical_fraction=engine_setting('CRITICAL_FRACTION'),
        )


@dataclass(frozen=True)
class StockAssessment:
    """Everything the alert engine needs to know about a medicine's stock."""

    on_hand: int
    nearest_expiry: datetime.date | None
    status: StockStatus
    thresholds: StockThresholds


def classify_status(
    quantity: int,
    thresholds: StockThresholds | None = None,
    nearest_expiry: datetime.date | None = None,
    today: datetime.date | None = None,
) -> StockStatus:
    if thresholds is None:
        thresholds = StockThresholds.for_medicine()
    today = today or timezone.localdate()

    if nearest_expiry is not None and nearest_expiry < today:
        return StockStatus.EXPIRED

    quantity = max(quantity or 0, 0)
    if quantity == 0 or quantity <= thresholds.reorder_level * thresholds.critical_fraction:
        return StockStatus.CRITICAL
    if quantity <= thresholds.reorder_level:
        return StockStatus.LOW
    return StockStatus.HEALTHY


def on_hand_quantity(batches: Iterable, today: datetime.date) -> int:
    """Sum of quantities over batches that have not expired."""
    return sum(batch.quantity for batch in batches if batch.expiry_date >= today)


def nearest_stocked_expiry(batches: Iterable) -> datetime.date | None:
    """Earliest expiry date among batches that still hold stock."""
    dates = [batch.expiry_date for batch in batches if batch.quantity > 0]
    return min(dates) if dates else None


def assess_medicine(medicine, batches=None, today: datetime.date | None = None) -> StockAssessment:
    today = today or timezone.localdate()
    if batches is None:
        batches = medicine.batches.all()
    batches = list(batches)

    thresholds = StockThresholds.for_medicine(medicine)
    on_hand = on_hand_quantity(batches, today)
    nearest_expiry = nearest_stocked_expiry(batches)
    return StockAssessment(
        on_hand=on_hand,
        nearest_expiry=nearest_expiry,
        status=classify_status(on_hand, thresholds, nearest_expiry, today),
        thresholds=thresholds,
    )


def classify_medicine(medicine, batches=None, today: datetime.date | None = None) -> StockStatus:
    return assess_medicine(medicine, batches, today).status
