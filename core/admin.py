"""
Core — Django Admin Configuration

Read-only admin for AuditLog.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog

ACTION_COLORS = {
    'CREATE': '#22c55e',
    'UPDATE': '#3b82f6',
    'DELETE': '#ef4444',
    'STATUS_CHANGE': '#eab308',
}


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only audit log viewer for administrators."""

    list_display = ('timestamp', 'action_badge', 'model_name', 'object_id', 'actor')
    list_filter = ('action', 'model_name', 'timestamp')
    search_fields = ('object_id', 'model_name', 'actor__email')
    readonly_fields = (
        'id', 'actor', 'action', 'model_name', 'object_id',
        'old_values', 'new_values', 'timestamp',
    )
    date_hierarchy = 'timestamp'
    list_select_related = ('actor',)
    list_per_page = 50
    ordering = ('-timestamp',)

    fieldsets = (
        (_('Event'), {
            'fields': ('id', 'action', 'timestamp', 'actor'),
        }),
        (_('Target'), {
            'fields': ('model_name', 'object_id'),
        }),
        (_('Data'), {
            'fields': ('old_values', 'new_values'),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Action'))
    def action_badge(self, obj):
        color = ACTION_COLORS.get(obj.action, '#6b7280')
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            color, obj.get_action_display(),
        )
