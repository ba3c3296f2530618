"""
Alerts — Models

Operational alerts raised by the evaluation pass. At most one unresolved
alert exists per (medicine, alert_type); resolved alerts are kept as
history, dismissed alerts are deleted.

@file alerts/models.py
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class AlertQuerySet(models.QuerySet):

    def unresolved(self):
        return self.filter(is_resolved=False)

    def unread(self):
        return self.filter(is_read=False, is_resolved=False)


class Alert(BaseModel):
    """
    State machine:

        open-unread --mark_read--> open-read --resolve--> resolved
        open-unread ----------------resolve-------------> resolved
        any state   --dismiss--> (row deleted)
    """

    class AlertType(models.TextChoices):
        LOW_STOCK = 'low_stock', _('Low stock')
        EXPIRY_WARNING = 'expiry_warning', _('Expiry warning')
        OVERSTOCK = 'overstock', _('Overstock')
        STOCKOUT = 'stockout', _('Stockout')

    class Severity(models.TextChoices):
        HIGH = 'high', _('High')
        MEDIUM = 'medium', _('Medium')
        LOW = 'low', _('Low')

    medicine = models.ForeignKey(
        'medicines.Medicine',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('medicine'),
    )
    alert_type = models.CharField(
        _('alert type'), max_length=20,
        choices=AlertType.choices, db_index=True,
    )
    severity = models.CharField(
        _('severity'), max_length=10,
        choices=Severity.choices, db_index=True,
    )
    message = models.TextField(_('message'))
    is_read = models.BooleanField(_('read'), default=False, db_index=True)
    is_resolved = models.BooleanField(_('resolved'), default=False, db_index=True)
    resolved_at = models.DateTimeField(_('resolved at'), null=True, blank=True)

    objects = AlertQuerySet.as_manager()

    class Meta:
        db_table = 'alerts'
        verbose_name = _('alert')
        verbose_name_plural = _('alerts')
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['medicine', 'alert_type'], name='alert_medicine_type_idx'),
            models.Index(fields=['is_resolved', 'severity'], name='alert_resolved_severity_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['medicine', 'alert_type'],
                condition=models.Q(is_resolved=False),
                name='unique_open_alert_per_medicine_type',
            ),
        ]

    def __str__(self):
        return f'[{self.severity}] {self.get_alert_type_display()} — {self.medicine_id}'

    @property
    def state(self) -> str:
        if self.is_resolved:
            return 'resolved'
        return 'open_read' if self.is_read else 'open_unread'

    def mark_resolved(self):
        self.is_resolved = True
        self.resolved_at = timezone.now()
