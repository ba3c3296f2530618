"""
Alerts — Filters

@file alerts/filters.py
"""

import django_filters

from .models import Alert


class AlertFilter(django_filters.FilterSet):
    alert_type = django_filters.MultipleChoiceFilter(choices=Alert.AlertType.choices)
    severity = django_filters.MultipleChoiceFilter(choices=Alert.Severity.choices)
    created_after = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')

    class Meta:
        model = Alert
        fields = ['medicine', 'alert_type', 'severity', 'is_read', 'is_resolved']
