"""
Medicines — Django Admin Configuration

Admin for Medicine and InventoryBatch with stock-status and expiry
badges.

@file medicines/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.conf import engine_setting

from .classifier import StockStatus, assess_medicine
from .models import InventoryBatch, Medicine

STATUS_COLORS = {
    StockStatus.HEALTHY: '#22c55e',
    StockStatus.LOW: '#eab308',
    StockStatus.CRITICAL: '#ef4444',
    StockStatus.EXPIRED: '#7c3aed',
}

BADGE_HTML = (
    '<span style="background:{};color:#fff;padding:2px 8px;'
    'border-radius:4px;font-size:11px;font-weight:600;">{}</span>'
)


def _render_expiry_badge(obj):
    days = obj.days_to_expiry()
    if days < 0:
        color, label = '#dc2626', f'EXPIRED ({abs(days)}d ago)'
    elif days <= engine_setting('EXPIRY_URGENT_DAYS'):
        color, label = '#ef4444', f'{days}d left'
    elif days <= engine_setting('EXPIRY_WARNING_DAYS'):
        color, label = '#f97316', f'{days}d left'
    else:
        color, label = '#22c55e', f'{days}d left'
    return format_html(BADGE_HTML, color, label)


class InventoryBatchInline(admin.TabularInline):
    model = InventoryBatch
    fk_name = 'medicine'
    extra = 0
    readonly_fields = ('expiry_badge', 'created_at')
    fields = (
        'batch_number', 'quantity', 'expiry_date', 'expiry_badge',
        'supplier', 'unit_price', 'location', 'created_at',
    )
    show_change_link = True

    @admin.display(description=_('Expiry'))
    def expiry_badge(self, obj):
        if not obj.pk:
            return '—'
        return _render_expiry_badge(obj)


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = (
        'name', 'generic_name', 'category', 'unit',
        'reorder_level', 'safety_stock', 'status_badge', 'created_at',
    )
    list_filter = ('category',)
    search_fields = ('name', 'generic_name', 'manufacturer')
    readonly_fields = ('id', 'created_at', 'updated_at')
    list_per_page = 30
    ordering = ('name',)
    inlines = [InventoryBatchInline]

    fieldsets = (
        (_('Identification'), {
            'fields': ('id', 'name', 'generic_name', 'category', 'manufacturer', 'unit'),
        }),
        (_('Stock thresholds'), {
            'fields': ('reorder_level', 'safety_stock'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('batches')

    @admin.display(description=_('Stock status'))
    def status_badge(self, obj):
        assessment = assess_medicine(obj, obj.batches.all())
        return format_html(
            BADGE_HTML, STATUS_COLORS[assessment.status],
            f'{assessment.status.label} ({assessment.on_hand})',
        )


@admin.register(InventoryBatch)
class InventoryBatchAdmin(admin.ModelAdmin):
    list_display = (
        'batch_number', 'medicine', 'quantity', 'expiry_date',
        'expiry_badge', 'supplier', 'location',
    )
    list_filter = ('medicine__category', 'location')
    search_fields = ('batch_number', 'supplier', 'medicine__name')
    readonly_fields = ('id', 'expiry_badge', 'created_at', 'updated_at')
    raw_id_fields = ('medicine',)
    date_hierarchy = 'expiry_date'
    list_select_related = ('medicine',)
    list_per_page = 30
    ordering = ('expiry_date',)

    @admin.display(description=_('Expiry'))
    def expiry_badge(self, obj):
        return _render_expiry_badge(obj)
