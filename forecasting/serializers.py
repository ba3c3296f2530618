"""
Forecasting — Serializers

Output-only: forecasts are computed on request and never written.

@file forecasting/serializers.py
"""

from rest_framework import serializers

from medicines.classifier import StockStatus

from .engine import ALLOWED_HORIZONS
from .reorder import ReorderBucket


class ForecastQuerySerializer(serializers.Serializer):
    horizon = serializers.ChoiceField(choices=ALLOWED_HORIZONS, required=False)
    bucket = serializers.ChoiceField(choices=ReorderBucket.choices, required=False)


class ForecastResultSerializer(serializers.Serializer):
    medicine_id = serializers.UUIDField()
    medicine_name = serializers.CharField()
    as_of = serializers.DateField()
    horizon_weeks = serializers.IntegerField()
    current_quantity = serializers.IntegerField()
    safety_stock = serializers.IntegerField()
    weekly_demand = serializers.FloatField()
    forecasted_demand = serializers.IntegerField()
    confidence = serializers.IntegerField()
    insufficient_history = serializers.BooleanField()
    history_weeks = serializers.IntegerField()
    days_until_stockout = serializers.IntegerField(allow_null=True)
    stockout_unbounded = serializers.BooleanField()
    recommended_order = serializers.IntegerField()
    bucket = serializers.ChoiceField(choices=ReorderBucket.choices)
    stock_status = serializers.ChoiceField(choices=StockStatus.choices)


class ForecastSummarySerializer(serializers.Serializer):
    horizon_weeks = serializers.IntegerField()
    total_medicines = serializers.IntegerField()
    buckets = serializers.DictField(child=serializers.IntegerField())
    needs_reorder = serializers.IntegerField()
    total_recommended_units = serializers.IntegerField()
    insufficient_history = serializers.IntegerField()
