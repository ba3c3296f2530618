"""
Forecasting — Service Layer

Assembles a per-medicine ForecastResult from persisted consumption
history, batches and thresholds. Results are recomputed on every call
and never stored.

@file forecasting/services.py
"""

import datetime
import logging
from collections import Counter
from dataclasses import dataclass

from django.utils import timezone

from core.conf import engine_setting
from core.exceptions import ResourceNotFoundError
from medicines.classifier import StockStatus, assess_medicine
from medicines.models import Medicine
from stock.services import ConsumptionService

from .engine import DemandForecast, forecast_demand, validate_horizon
from .reorder import ReorderBucket, ReorderRecommendation, recommend_reorder

logger = logging.getLogger('medistock')


@dataclass(frozen=True)
class ForecastResult:
    medicine_id: str
    medicine_name: str
    as_of: datetime.date
    horizon_weeks: int
    current_quantity: int
    safety_stock: int
    weekly_demand: float
    forecasted_demand: int
    confidence: int
    insufficient_history: bool
    history_weeks: int
    days_until_stockout: int | None
    stockout_unbounded: bool
    recommended_order: int
    bucket: ReorderBucket
    stock_status: StockStatus


class ForecastService:
    """Demand forecast and reorder recommendation per medicine."""

    @staticmethod
    def demand(medicine, horizon_weeks: int, as_of: datetime.date | None = None) -> DemandForecast:
        series = ConsumptionService.weekly_series(
            medicine, weeks=engine_setting('HISTORY_WEEKS'), as_of=as_of,
        )
        return forecast_demand(
            series,
            horizon_weeks,
            min_history_weeks=engine_setting('MIN_HISTORY_WEEKS'),
            confidence_floor=engine_setting('CONFIDENCE_FLOOR'),
            confidence_cap=engine_setting('CONFIDENCE_CAP'),
        )

    @staticmethod
    def recommendation(on_hand: int, safety_stock: int, demand: DemandForecast) -> ReorderRecommendation:
        return recommend_reorder(
            on_hand,
            safety_stock,
            demand.weekly_demand,
            demand.horizon_weeks,
            engine_setting('LEAD_TIME_WEEKS'),
            critical_days=engine_setting('STOCKOUT_ALERT_DAYS'),
            low_days=engine_setting('LOW_COVER_DAYS'),
        )

    @staticmethod
    def forecast(
        medicine: Medicine,
        horizon_weeks: int | None = None,
        as_of: datetime.date | None = None,
    ) -> ForecastResult:
        horizon_weeks = validate_horizon(horizon_weeks or engine_setting('DEFAULT_FORECAST_WEEKS'))
        as_of = as_of or timezone.localdate()

        assessment = assess_medicine(medicine, medicine.batches.all(), as_of)
        demand = ForecastService.demand(medicine, horizon_weeks, as_of)
        reorder = ForecastService.recommendation(assessment.on_hand, medicine.safety_stock, demand)

        return ForecastResult(
            medicine_id=str(medicine.pk),
            medicine_name=medicine.name,
            as_of=as_of,
            horizon_weeks=horizon_weeks,
            current_quantity=assessment.on_hand,
            safety_stock=medicine.safety_stock,
            weekly_demand=round(demand.weekly_demand, 2),
            forecasted_demand=demand.forecasted_demand,
            confidence=demand.confidence,
            insufficient_history=demand.insufficient_history,
            history_weeks=demand.weeks_used,
            days_until_stockout=reorder.days_until_stockout,
            stockout_unbounded=reorder.stockout_unbounded,
            recommended_order=reorder.recommended_order,
            bucket=reorder.bucket,
            stock_status=assessment.status,
        )

    @staticmethod
    def forecast_by_id(medicine_id, horizon_weeks: int | None = None) -> ForecastResult:
        try:
            medicine = Medicine.objects.prefetch_related('batches').get(pk=medicine_id)
        except Medicine.DoesNotExist:
            raise ResourceNotFoundError(detail='Medicine not found.')
        return ForecastService.forecast(medicine, horizon_weeks)

    @staticmethod
    def forecast_all(
        horizon_weeks: int | None = None,
        queryset=None,
        as_of: datetime.date | None = None,
    ) -> list[ForecastResult]:
        if queryset is None:
            queryset = Medicine.objects.all()
        as_of = as_of or timezone.localdate()
        return [
            ForecastService.forecast(medicine, horizon_weeks, as_of)
            for medicine in queryset.prefetch_related('batches')
        ]

    @staticmethod
    def bucket_summary(horizon_weeks: int | None = None, as_of: datetime.date | None = None) -> dict:
        """Counts of medicines per reorder bucket plus totals for the dashboard."""
        results = ForecastService.forecast_all(horizon_weeks, as_of=as_of)
        counts = Counter(result.bucket for result in results)
        return {
            'horizon_weeks': horizon_weeks or engine_setting('DEFAULT_FORECAST_WEEKS'),
            'total_medicines': len(results),
            'buckets': {bucket.value: counts.get(bucket, 0) for bucket in ReorderBucket},
            'needs_reorder': sum(1 for result in results if result.recommended_order > 0),
            'total_recommended_units': sum(result.recommended_order for result in results),
            'insufficient_history': sum(1 for result in results if result.insufficient_history),
        }
