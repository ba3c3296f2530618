"""
Users — Django Admin Configuration

Admin panel for User, UserRole and NotificationPreference, with the
role managed inline on the user page.

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import NotificationPreference, User, UserRole

ROLE_COLORS = {
    UserRole.RoleChoices.ADMIN: '#ef4444',
    UserRole.RoleChoices.PHARMACY_MANAGER: '#3b82f6',
    UserRole.RoleChoices.STORE_MANAGER: '#22c55e',
}


class UserRoleInline(admin.StackedInline):
    model = UserRole
    fk_name = 'user'
    extra = 0
    max_num = 1
    readonly_fields = ('created_at',)
    fields = ('role', 'created_at')


class NotificationPreferenceInline(admin.StackedInline):
    model = NotificationPreference
    extra = 0
    max_num = 1


# ---------------------------------------------------------------------------
# User Admin
# ---------------------------------------------------------------------------

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'full_name', 'role_badge', 'is_active', 'is_staff', 'date_joined')
    list_filter = ('is_active', 'is_staff', 'is_superuser', 'user_role__role')
    search_fields = ('email', 'full_name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'date_joined', 'last_login')
    list_select_related = ('user_role',)
    list_per_page = 30
    ordering = ('-created_at',)
    inlines = [UserRoleInline, NotificationPreferenceInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'email', 'password'),
        }),
        (_('Profile'), {
            'fields': ('full_name', 'avatar_url'),
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Audit'), {
            'fields': ('date_joined', 'last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'full_name'),
        }),
    )

    @admin.display(description=_('Role'))
    def role_badge(self, obj):
        role = obj.role_name
        if role is None:
            return '—'
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            ROLE_COLORS.get(role, '#6b7280'), obj.user_role.get_role_display(),
        )


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'role', 'created_at')
    list_filter = ('role',)
    search_fields = ('user__email', 'user__full_name')
    readonly_fields = ('id', 'created_at', 'updated_at')
    raw_id_fields = ('user',)
    list_select_related = ('user',)
    list_per_page = 50


@admin.register(NotificationPreference)
class NotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = (
        'user', 'email_enabled', 'sms_enabled', 'whatsapp_enabled',
        'low_stock_alerts', 'expiry_alerts', 'daily_summary',
    )
    list_filter = ('email_enabled', 'sms_enabled', 'whatsapp_enabled', 'daily_summary')
    search_fields = ('user__email', 'phone')
    raw_id_fields = ('user',)
    list_select_related = ('user',)
