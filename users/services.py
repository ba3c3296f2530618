"""
Users — Service Layer

User accounts, role assignment and notification preferences. No HTTP
context — services receive plain Python arguments plus the acting
Principal and raise typed exceptions.

@file users/services.py
"""

import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE, AUDIT_ACTION_UPDATE
from core.exceptions import DuplicateResourceError, ResourceNotFoundError
from core.services import AuditService

from .models import NotificationPreference, User, UserRole
from .policy import AccessPolicy, Action, Principal

logger = logging.getLogger('medistock')

PREFERENCE_FIELDS = (
    'phone', 'email_enabled', 'sms_enabled', 'whatsapp_enabled',
    'low_stock_alerts', 'expiry_alerts', 'daily_summary',
)

# Roles that receive operational alert notifications.
NOTIFIED_ROLES = (UserRole.RoleChoices.ADMIN, UserRole.RoleChoices.PHARMACY_MANAGER)


# ---------------------------------------------------------------------------
# User service
# ---------------------------------------------------------------------------

class UserService:
    """Account creation and profile updates (admin only)."""

    @staticmethod
    @transaction.atomic
    def create_user(
        *,
        email: str,
        password: str | None = None,
        principal: Principal,
        **extra_fields,
    ) -> User:
        AccessPolicy.check(principal, Action.MANAGE_USERS)
        if User.objects.filter(email__iexact=email).exists():
            raise DuplicateResourceError(detail=f'Email {email} already registered.')

        user = User.objects.create_user(email=email, password=password, **extra_fields)
        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE,
            model_name='User',
            object_id=str(user.pk),
            new_values={'email': user.email, 'full_name': user.full_name},
        )
        return user

    @staticmethod
    @transaction.atomic
    def update_user(*, user_id, principal: Principal, **fields) -> User:
        AccessPolicy.check(principal, Action.MANAGE_USERS)
        try:
            user = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise ResourceNotFoundError()

        old_snapshot = AuditService.snapshot(user, fields=['email', 'full_name', 'avatar_url', 'is_active'])

        for field, value in fields.items():
            if hasattr(user, field) and field not in ('id', 'pk', 'password'):
                setattr(user, field, value)
        user.save()

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='User',
            object_id=str(user.pk),
            old_values=old_snapshot,
            new_values=AuditService.snapshot(user, fields=['email', 'full_name', 'avatar_url', 'is_active']),
        )
        return user


# ---------------------------------------------------------------------------
# Role service
# ---------------------------------------------------------------------------

class RoleService:
    """RBAC management: one role per user, assign replaces, revoke removes."""

    @staticmethod
    @transaction.atomic
    def assign_role(*, user: User, role: str, principal: Principal) -> UserRole:
        AccessPolicy.check(principal, Action.MANAGE_USERS)
        if role not in UserRole.RoleChoices.values:
            raise ValidationError({'role': f'Unknown role "{role}".'})

        existing = UserRole.objects.select_for_update().filter(user=user).first()
        old_role = existing.role if existing else None
        if existing is None:
            user_role = UserRole.objects.create(user=user, role=role)
        else:
            user_role = existing
            if user_role.role != role:
                user_role.role = role
                user_role.save(update_fields=['role', 'updated_at'])

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_CREATE if existing is None else AUDIT_ACTION_UPDATE,
            model_name='UserRole',
            object_id=str(user_role.pk),
            old_values={'role': old_role} if old_role else None,
            new_values={'user': str(user.pk), 'role': role},
        )
        logger.info('Role %s assigned to user %s (was %s)', role, user.pk, old_role)
        return user_role

    @staticmethod
    @transaction.atomic
    def revoke_role(*, user: User, principal: Principal) -> None:
        AccessPolicy.check(principal, Action.MANAGE_USERS)
        user_role = UserRole.objects.filter(user=user).first()
        if user_role is None:
            raise ResourceNotFoundError(detail='User has no role assigned.')

        AuditService.log(
            actor=principal.actor,
            action=AUDIT_ACTION_DELETE,
            model_name='UserRole',
            object_id=str(user_role.pk),
            old_values={'user': str(user.pk), 'role': user_role.role},
        )
        user_role.delete()
        logger.info('Role revoked from user %s', user.pk)

    @staticmethod
    def get_role(user: User) -> str | None:
        return UserRole.objects.filter(user=user).values_list('role', flat=True).first()


# ---------------------------------------------------------------------------
# Notification preferences
# ---------------------------------------------------------------------------

class PreferenceService:
    """Per-user notification settings and recipient resolution for alerts."""

    @staticmethod
    def get_preferences(user: User) -> NotificationPreference:
        preference, _ = NotificationPreference.objects.get_or_create(user=user)
        return preference

    @staticmethod
    @transaction.atomic
    def update_preferences(*, user: User, **fields) -> NotificationPreference:
        preference, _ = NotificationPreference.objects.select_for_update().get_or_create(user=user)
        for field, value in fields.items():
            if field in PREFERENCE_FIELDS:
                setattr(preference, field, value)
        preference.save()
        return preference

    @staticmethod
    def alert_recipients(category: str) -> list[tuple[str, str]]:
        """
        Resolve (channel, recipient) pairs for an alert category.

        ``category`` is the preference flag name (``low_stock_alerts``,
        ``expiry_alerts`` or ``daily_summary``). Users without a stored
        preference row get the model defaults.
        """
        users = (
            User.objects.active()
            .filter(user_role__role__in=NOTIFIED_ROLES)
            .select_related('notification_preference')
            .order_by('email')
        )
        recipients: list[tuple[str, str]] = []
        for user in users:
            try:
                preference = user.notification_preference
            except NotificationPreference.DoesNotExist:
                preference = NotificationPreference(user=user)
            if getattr(preference, category, False):
                recipients.extend(preference.channels())
        return recipients
