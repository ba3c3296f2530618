"""
Users — Models

Custom user (stored as the ``profiles`` table) with email-based auth,
a single-role RBAC assignment (UserRole) and per-user notification
preferences used by the alert dispatcher.

@file users/models.py
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel
from users.managers import UserManager


# ---------------------------------------------------------------------------
# User (profile)
# ---------------------------------------------------------------------------

class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Custom user for MediStock.

    Authentication is email-based. The operational role lives in
    UserRole; a user without one holds no capabilities at all.
    """

    email = models.EmailField(_('email'), unique=True)
    full_name = models.CharField(_('full name'), max_length=200, blank=True)
    avatar_url = models.URLField(_('avatar URL'), blank=True)

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'profiles'
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']

    def __str__(self):
        return self.full_name or self.email

    def get_full_name(self):
        return self.full_name or self.email

    def get_short_name(self):
        return self.full_name.split(' ')[0] if self.full_name else self.email

    @property
    def role_name(self) -> str | None:
        """The assigned role value, or None when the user has no role."""
        try:
            return self.user_role.role
        except UserRole.DoesNotExist:
            return None

    def has_role(self, role_name: str) -> bool:
        return self.role_name == role_name


# ---------------------------------------------------------------------------
# UserRole (RBAC)
# ---------------------------------------------------------------------------

class UserRole(BaseModel):
    """
    Associates a user with exactly one operational role.

    Absence of a row means "no role", which is a valid terminal state.
    """

    class RoleChoices(models.TextChoices):
        ADMIN = 'admin', _('Admin')
        PHARMACY_MANAGER = 'pharmacy_manager', _('Pharmacy manager')
        STORE_MANAGER = 'store_manager', _('Store manager')

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='user_role',
        verbose_name=_('user'),
    )
    role = models.CharField(
        _('role'), max_length=20,
        choices=RoleChoices.choices, db_index=True,
    )

    class Meta:
        db_table = 'user_roles'
        verbose_name = _('user role')
        verbose_name_plural = _('user roles')
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.user} ← {self.role}'


# ---------------------------------------------------------------------------
# Notification preferences
# ---------------------------------------------------------------------------

class NotificationPreference(BaseModel):
    """
    Channels and alert categories a user wants to be notified about.

    Created lazily with defaults the first time it is read.
    """

    class ChannelChoices(models.TextChoices):
        EMAIL = 'email', _('Email')
        SMS = 'sms', _('SMS')
        WHATSAPP = 'whatsapp', _('WhatsApp')

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notification_preference',
        verbose_name=_('user'),
    )
    phone = models.CharField(
        _('phone'), max_length=20, blank=True,
        help_text=_('Destination for SMS and WhatsApp notifications'),
    )
    email_enabled = models.BooleanField(_('email notifications'), default=True)
    sms_enabled = models.BooleanField(_('SMS notifications'), default=False)
    whatsapp_enabled = models.BooleanField(_('WhatsApp notifications'), default=False)
    low_stock_alerts = models.BooleanField(
        _('low stock alerts'), default=True,
        help_text=_('Stockout, low stock and overstock alerts'),
    )
    expiry_alerts = models.BooleanField(_('expiry alerts'), default=True)
    daily_summary = models.BooleanField(_('daily summary'), default=False)

    class Meta:
        verbose_name = _('notification preference')
        verbose_name_plural = _('notification preferences')

    def __str__(self):
        return f'Notifications for {self.user}'

    def channels(self) -> list[tuple[str, str]]:
        """Return (channel, recipient) pairs that are enabled and addressable."""
        pairs = []
        if self.email_enabled and self.user.email:
            pairs.append((self.ChannelChoices.EMAIL, self.user.email))
        if self.sms_enabled and self.phone:
            pairs.append((self.ChannelChoices.SMS, self.phone))
        if self.whatsapp_enabled and self.phone:
            pairs.append((self.ChannelChoices.WHATSAPP, self.phone))
        return pairs
