"""
Stock — Django Admin Configuration

Read-only list of ConsumptionRecord. No edit, no delete (insert-only).
INSERT ONLY — model save() blocks updates; delete() raises.

@file stock/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import ConsumptionRecord


@admin.register(ConsumptionRecord)
class ConsumptionRecordAdmin(admin.ModelAdmin):
    list_display = (
        'consumption_date', 'medicine', 'quantity_consumed',
        'corrects', 'recorded_by', 'created_at',
    )
    list_filter = ('consumption_date', 'medicine__category')
    search_fields = ('medicine__name', 'notes')
    readonly_fields = (
        'id', 'medicine', 'consumption_date', 'quantity_consumed',
        'notes', 'corrects', 'recorded_by', 'created_at',
    )
    list_select_related = ('medicine', 'recorded_by')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'consumption_date'
    ordering = ('-consumption_date',)

    fieldsets = (
        (_('Consumption'), {
            'fields': ('id', 'medicine', 'consumption_date', 'quantity_consumed', 'notes'),
        }),
        (_('Correction'), {
            'fields': ('corrects',),
        }),
        (_('Audit'), {
            'fields': ('recorded_by', 'created_at'),
        }),
    )

    def has_add_permission(self, request):
        return False  # recorded through the API so batches are decremented

    def has_change_permission(self, request, obj=None):
        return False  # INSERT ONLY — no updates

    def has_delete_permission(self, request, obj=None):
        return False  # INSERT ONLY — no deletes
