"""
Alerts — Serializers

@file alerts/serializers.py
"""

from rest_framework import serializers

from .models import Alert


class AlertSerializer(serializers.ModelSerializer):
    medicine_name = serializers.CharField(source='medicine.name', read_only=True)
    alert_type_display = serializers.CharField(source='get_alert_type_display', read_only=True)
    severity_display = serializers.CharField(source='get_severity_display', read_only=True)
    state = serializers.CharField(read_only=True)

    class Meta:
        model = Alert
        fields = [
            'id', 'medicine', 'medicine_name',
            'alert_type', 'alert_type_display',
            'severity', 'severity_display', 'message',
            'is_read', 'is_resolved', 'resolved_at', 'state',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class EvaluateRequestSerializer(serializers.Serializer):
    medicine = serializers.UUIDField(required=False, allow_null=True)
