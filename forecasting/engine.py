"""
Forecasting — Demand Forecast Engine

Weighted moving average over a weekly consumption series. Weights rise
linearly from 1.0 on the oldest period to 2.0 on the most recent one.
Confidence combines history length and the series' coefficient of
variation:

    confidence = 100 * min(1, full_weeks / min_history_weeks) * 1 / (1 + cv)

rounded half-up and clamped to [floor, cap]. Standard-library arithmetic
only (``math.fsum``) so the same series always yields the same numbers.

@file forecasting/engine.py
"""

import math
from dataclasses import dataclass

from django.core.exceptions import ValidationError

from stock.aggregation import ConsumptionSeries

ALLOWED_HORIZONS = (4, 8, 12)


@dataclass(frozen=True)
class DemandForecast:
    weekly_demand: float
    forecasted_demand: int
    horizon_weeks: int
    confidence: int
    insufficient_history: bool
    weeks_used: int


def ceil_units(value: float) -> int:
    """Whole units needed to cover ``value``; float noise below 1e-6 is ignored."""
    return math.ceil(round(value, 6))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_horizon(horizon_weeks) -> int:
    if isinstance(horizon_weeks, bool) or horizon_weeks not in ALLOWED_HORIZONS:
        raise ValidationError(
            {'horizon_weeks': f'Horizon must be one of {", ".join(map(str, ALLOWED_HORIZONS))} weeks.'},
        )
    return horizon_weeks


def weighted_average(quantities: list[int]) -> float:
    n = len(quantities)
    if n == 0:
        return 0.0
    if n == 1:
        return float(quantities[0])
    weights = [1.0 + index / (n - 1) for index in range(n)]
    return math.fsum(w * q for w, q in zip(weights, quantities)) / math.fsum(weights)


def coefficient_of_variation(quantities: list[int]) -> float:
    """Population standard deviation over mean; 0 when the mean is 0."""
    n = len(quantities)
    if n == 0:
        return 0.0
    mean = math.fsum(quantities) / n
    if mean == 0:
        return 0.0
    variance = math.fsum((q - mean) ** 2 for q in quantities) / n
    return math.sqrt(variance) / mean


def confidence_score(
    quantities: list[int],
    full_weeks: int,
    *,
    min_history_weeks: int = 8,
    floor: int = 40,
    cap: int = 99,
) -> int:
    history_factor = min(1.0, full_weeks / min_history_weeks)
    variance_factor = 1.0 / (1.0 + coefficient_of_variation(quantities))
    score = _round_half_up(100 * history_factor * variance_factor)
    return max(floor, min(cap, score))


def forecast_demand(
    series: ConsumptionSeries,
    horizon_weeks: int,
    *,
    min_history_weeks: int = 8,
    confidence_floor: int = 40,
    confidence_cap: int = 99,
) -> DemandForecast:
    """
    Project weekly demand from ``series`` and scale it to ``horizon_weeks``.

    A series with no full period (or no consumption at all) still produces
    a result: confidence sits at the floor and ``insufficient_history`` is
    set, so callers never have to handle an exception for thin data.
    """
    validate_horizon(horizon_weeks)
    quantities = series.quantities
    weekly = weighted_average(quantities)

    insufficient = not series.has_full_period or not quantities or series.total <= 0
    if insufficient:
        confidence = confidence_floor
    else:
        confidence = confidence_score(
            quantities,
            series.full_weeks,
            min_history_weeks=min_history_weeks,
            floor=confidence_floor,
            cap=confidence_cap,
        )

    return DemandForecast(
        weekly_demand=weekly,
        forecasted_demand=ceil_units(weekly * horizon_weeks),
        horizon_weeks=horizon_weeks,
        confidence=confidence,
        insufficient_history=insufficient,
        weeks_used=len(quantities),
    )
