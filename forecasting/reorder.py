"""
Forecasting — Reorder Recommender

Turns projected weekly demand and on-hand stock into days until stockout,
a recommended order quantity and a display bucket. The bucket is about
time-to-stockout and is reported separately from the on-hand stock
status of the classifier.

@file forecasting/reorder.py
"""

import math
from dataclasses import dataclass

from django.db import models
from django.utils.translation import gettext_lazy as _

from .engine import ceil_units

EPSILON = 1e-9


class ReorderBucket(models.TextChoices):
    HEALTHY = 'healthy', _('Healthy')
    LOW = 'low', _('Low')
    CRITICAL = 'critical', _('Critical')


@dataclass(frozen=True)
class ReorderRecommendation:
    # None when demand is zero (stockout never happens); see stockout_unbounded.
    days_until_stockout: int | None
    stockout_unbounded: bool
    recommended_order: int
    bucket: ReorderBucket


def stockout_bucket(
    days_until_stockout: int | None,
    *,
    critical_days: int = 14,
    low_days: int = 30,
) -> ReorderBucket:
    if days_until_stockout is None:
        return ReorderBucket.HEALTHY
    if days_until_stockout <= critical_days:
        return ReorderBucket.CRITICAL
    if days_until_stockout <= low_days:
        return ReorderBucket.LOW
    return ReorderBucket.HEALTHY


def recommend_reorder(
    current_quantity: int,
    safety_stock: int,
    weekly_demand: float,
    horizon_weeks: int,
    lead_time_weeks: int = 2,
    *,
    critical_days: int = 14,
    low_days: int = 30,
) -> ReorderRecommendation:
    current_quantity = max(current_quantity or 0, 0)
    weekly_demand = max(weekly_demand or 0.0, 0.0)

    if weekly_demand == 0:
        return ReorderRecommendation(
            days_until_stockout=None,
            stockout_unbounded=True,
            recommended_order=0,
            bucket=ReorderBucket.HEALTHY,
        )

    daily = max(weekly_demand / 7, EPSILON)
    days = math.floor(current_quantity / daily)
    needed = weekly_demand * (lead_time_weeks + horizon_weeks) + safety_stock - current_quantity
    return ReorderRecommendation(
        days_until_stockout=days,
        stockout_unbounded=False,
        recommended_order=max(0, ceil_units(needed)),
        bucket=stockout_bucket(days, critical_days=critical_days, low_days=low_days),
    )
