"""
Stock — Consumption Aggregator

Buckets raw consumption records into rolling 7-day periods ending on a
reference date. Pure: no database access, no clock reads.

Period k (0 = most recent) covers [as_of - 7k - 6, as_of - 7k]. The
window is clipped to the available history, so a medicine first consumed
three weeks ago yields three periods, never twelve with nine leading
zeros. With less than one full period of history the series is a single
partial period flagged ``has_full_period = False``.

@file stock/aggregation.py
"""

import datetime
from dataclasses import dataclass
from typing import Iterable

PERIOD_DAYS = 7


@dataclass(frozen=True)
class WeeklyPoint:
    period_start: datetime.date
    period_end: datetime.date
    quantity: int


@dataclass(frozen=True)
class ConsumptionSeries:
    """Zero-filled weekly consumption, oldest period first."""

    points: tuple[WeeklyPoint, ...]
    has_full_period: bool
    as_of: datetime.date

    @property
    def quantities(self) -> list[int]:
        return [point.quantity for point in self.points]

    @property
    def full_weeks(self) -> int:
        return len(self.points) if self.has_full_period else 0

    @property
    def total(self) -> int:
        return sum(self.quantities)


def _as_pair(record) -> tuple[datetime.date, int]:
    if isinstance(record, tuple):
        return record[0], record[1]
    return record.consumption_date, record.quantity_consumed


def aggregate_weekly(
    records: Iterable,
    weeks: int,
    as_of: datetime.date,
    history_start: datetime.date | None = None,
) -> ConsumptionSeries:
    """
    Aggregate ``records`` into at most ``weeks`` rolling periods ending on ``as_of``.

    The series starts at the oldest complete period of history, not at the
    start of the trailing ``weeks`` window: a short history yields fewer
    periods, never leading zero periods. Empty periods inside that span are
    zero-filled. A partial oldest period is left out with its records.

    ``records`` may be ConsumptionRecord instances, any objects exposing
    ``consumption_date`` / ``quantity_consumed``, or ``(date, quantity)``
    tuples. Records after ``as_of`` are ignored. Corrections (negative
    quantities) net against their period; a period never goes below zero.

    ``history_start`` is the date of the first record ever made, for callers
    that pass only the records inside the window; it defaults to the
    earliest date among ``records``.
    """
    if weeks < 1:
        raise ValueError('weeks must be at least 1')

    pairs = [_as_pair(record) for record in records]
    pairs = [(day, qty) for day, qty in pairs if day <= as_of]

    if history_start is None and pairs:
        history_start = min(day for day, _ in pairs)
    if history_start is not None and history_start <= as_of:
        history_days = (as_of - history_start).days + 1
    else:
        history_days = 0

    available = history_days // PERIOD_DAYS
    has_full_period = available >= 1
    count = min(weeks, available) if has_full_period else 1

    totals = [0] * count
    for day, qty in pairs:
        index = (as_of - day).days // PERIOD_DAYS
        if index < count:
            totals[index] += qty

    points = []
    for index in reversed(range(count)):
        period_end = as_of - datetime.timedelta(days=PERIOD_DAYS * index)
        points.append(WeeklyPoint(
            period_start=period_end - datetime.timedelta(days=PERIOD_DAYS - 1),
            period_end=period_end,
            quantity=max(totals[index], 0),
        ))

    return ConsumptionSeries(
        points=tuple(points),
        has_full_period=has_full_period,
        as_of=as_of,
    )
