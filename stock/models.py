"""
Stock — Models

Consumption history: one row per recorded stock-out event for a medicine.
Records are INSERT ONLY — never update or delete. A mistaken entry is
fixed by appending a correction row (negative quantity) that points at
the record it corrects.

@file stock/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class ConsumptionRecord(models.Model):
    """
    A single immutable consumption event (insert only).

    quantity_consumed is never zero; it is negative only on corrections.
    The weekly consumption series feeding the forecast is aggregated from
    these rows.
    """

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )
    medicine = models.ForeignKey(
        'medicines.Medicine',
        on_delete=models.PROTECT,
        related_name='consumption_records',
        verbose_name=_('medicine'),
    )
    consumption_date = models.DateField(_('consumption date'), db_index=True)
    quantity_consumed = models.IntegerField(_('quantity consumed'))
    notes = models.TextField(_('notes'), blank=True)
    corrects = models.ForeignKey(
        'self',
        null=True, blank=True,
        on_delete=models.RESTRICT,
        related_name='corrections',
        verbose_name=_('corrects'),
        help_text=_('Record this row corrects, if it is a correction'),
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('recorded by'),
    )
    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    # No updated_at — immutable record.

    class Meta:
        db_table = 'consumption_history'
        verbose_name = _('consumption record')
        verbose_name_plural = _('consumption records')
        ordering = ['-consumption_date', '-created_at']
        indexes = [
            models.Index(fields=['medicine', 'consumption_date'], name='consumption_med_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(quantity_consumed=0),
                name='consumption_quantity_non_zero',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity_consumed__gt=0) | models.Q(corrects__isnull=False),
                name='consumption_negative_only_for_corrections',
            ),
        ]

    def __str__(self):
        return f'{self.medicine_id} {self.quantity_consumed} on {self.consumption_date}'

    @property
    def is_correction(self) -> bool:
        return self.corrects_id is not None

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('ConsumptionRecord is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('ConsumptionRecord records cannot be deleted.')
