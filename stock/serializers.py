"""
Stock — Serializers

@file stock/serializers.py
"""

from django.utils import timezone
from rest_framework import serializers

from medicines.models import Medicine

from .models import ConsumptionRecord


class ConsumptionRecordReadSerializer(serializers.ModelSerializer):
    medicine_name = serializers.CharField(source='medicine.name', read_only=True)
    recorded_by_email = serializers.EmailField(source='recorded_by.email', read_only=True, default=None)
    is_correction = serializers.BooleanField(read_only=True)

    class Meta:
        model = ConsumptionRecord
        fields = [
            'id', 'medicine', 'medicine_name', 'consumption_date',
            'quantity_consumed', 'notes', 'corrects', 'is_correction',
            'recorded_by', 'recorded_by_email', 'created_at',
        ]
        read_only_fields = fields


class ConsumptionWriteSerializer(serializers.Serializer):
    medicine = serializers.PrimaryKeyRelatedField(queryset=Medicine.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    consumption_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_consumption_date(self, value):
        if value > timezone.localdate():
            raise serializers.ValidationError('Consumption date cannot be in the future.')
        return value


class CorrectionSerializer(serializers.Serializer):
    corrected_quantity = serializers.IntegerField(min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class WeeklyPointSerializer(serializers.Serializer):
    period_start = serializers.DateField()
    period_end = serializers.DateField()
    quantity = serializers.IntegerField()


class ConsumptionSeriesSerializer(serializers.Serializer):
    points = WeeklyPointSerializer(many=True)
    has_full_period = serializers.BooleanField()
    full_weeks = serializers.IntegerField()
    total = serializers.IntegerField()
    as_of = serializers.DateField()
