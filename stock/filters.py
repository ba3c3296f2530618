"""
Stock — Filters

@file stock/filters.py
"""

import django_filters

from .models import ConsumptionRecord


class ConsumptionRecordFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name='consumption_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='consumption_date', lookup_expr='lte')
    corrections = django_filters.BooleanFilter(field_name='corrects', lookup_expr='isnull', exclude=True)

    class Meta:
        model = ConsumptionRecord
        fields = ['medicine', 'recorded_by']
