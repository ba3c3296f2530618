"""
Alerts — Django Admin Configuration

@file alerts/admin.py
"""

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Alert

SEVERITY_COLORS = {
    Alert.Severity.HIGH: '#ef4444',
    Alert.Severity.MEDIUM: '#f97316',
    Alert.Severity.LOW: '#3b82f6',
}


@admin.action(description=_('Resolve selected alerts'))
def resolve_alerts(modeladmin, request, queryset):
    updated = queryset.filter(is_resolved=False).update(
        is_resolved=True, resolved_at=timezone.now(), updated_at=timezone.now(),
    )
    modeladmin.message_user(request, f'{updated} alert(s) resolved.')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = (
        'medicine', 'alert_type', 'severity_badge', 'is_read',
        'is_resolved', 'updated_at',
    )
    list_filter = ('alert_type', 'severity', 'is_read', 'is_resolved')
    search_fields = ('message', 'medicine__name')
    readonly_fields = (
        'id', 'medicine', 'alert_type', 'severity', 'message',
        'resolved_at', 'created_at', 'updated_at',
    )
    list_select_related = ('medicine',)
    list_per_page = 50
    date_hierarchy = 'created_at'
    ordering = ('is_resolved', '-updated_at')
    actions = [resolve_alerts]

    def has_add_permission(self, request):
        return False  # raised by the evaluation pass only

    @admin.display(description=_('Severity'))
    def severity_badge(self, obj):
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;'
            'border-radius:4px;font-size:11px;font-weight:600;">{}</span>',
            SEVERITY_COLORS.get(obj.severity, '#6b7280'), obj.get_severity_display(),
        )
