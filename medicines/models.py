"""
Medicines — Models

Medicine catalogue with per-medicine stock thresholds, and the physical
inventory batches (lots) holding on-hand quantity with expiry dates.

@file medicines/models.py
"""

import datetime

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.conf import engine_setting
from core.models import BaseModel


def default_reorder_level():
    return engine_setting('DEFAULT_REORDER_LEVEL')


def default_safety_stock():
    return engine_setting('DEFAULT_SAFETY_STOCK')


# ---------------------------------------------------------------------------
# Medicine
# ---------------------------------------------------------------------------

class MedicineQuerySet(models.QuerySet):

    def with_on_hand(self, today: datetime.date | None = None):
        """Annotate ``on_hand``: stock summed over batches not yet expired."""
        today = today or timezone.localdate()
        return self.annotate(
            on_hand=Coalesce(
                Sum('batches__quantity', filter=Q(batches__expiry_date__gte=today)),
                0,
            ),
        )


class Medicine(BaseModel):
    """
    A stocked medicine (catalogue entry).

    reorder_level and safety_stock drive the status classifier and the
    reorder recommendation; both fall back to the configured defaults.
    """

    class CategoryChoices(models.TextChoices):
        TABLETS = 'tablets', _('Tablets')
        CAPSULES = 'capsules', _('Capsules')
        INJECTIONS = 'injections', _('Injections')
        SYRUPS = 'syrups', _('Syrups')
        OINTMENTS = 'ointments', _('Ointments')
        DROPS = 'drops', _('Drops')
        SURGICAL = 'surgical', _('Surgical')
        EQUIPMENT = 'equipment', _('Equipment')
        OTHER = 'other', _('Other')

    name = models.CharField(_('name'), max_length=255, db_index=True)
    generic_name = models.CharField(_('generic name'), max_length=255, blank=True)
    category = models.CharField(
        _('category'), max_length=20,
        choices=CategoryChoices.choices,
        default=CategoryChoices.OTHER,
        db_index=True,
    )
    manufacturer = models.CharField(_('manufacturer'), max_length=255, blank=True)
    unit = models.CharField(
        _('unit'), max_length=50, default='units',
        help_text=_('Dispensing unit, e.g. tablets, vials, bottles'),
    )
    reorder_level = models.PositiveIntegerField(
        _('reorder level'), default=default_reorder_level,
        help_text=_('On-hand quantity at or below which stock is low'),
    )
    safety_stock = models.PositiveIntegerField(
        _('safety stock'), default=default_safety_stock,
        help_text=_('Buffer kept on hand on top of forecast demand'),
    )

    objects = MedicineQuerySet.as_manager()

    class Meta:
        db_table = 'medicines'
        verbose_name = _('medicine')
        verbose_name_plural = _('medicines')
        ordering = ['name']
        indexes = [
            models.Index(fields=['category', 'name'], name='medicine_category_name_idx'),
        ]

    def __str__(self):
        if self.generic_name:
            return f'{self.name} ({self.generic_name})'
        return self.name


# ---------------------------------------------------------------------------
# Inventory batch
# ---------------------------------------------------------------------------

class InventoryBatchQuerySet(models.QuerySet):

    def usable(self, today: datetime.date | None = None):
        """Batches whose expiry date has not passed."""
        return self.filter(expiry_date__gte=today or timezone.localdate())

    def in_stock(self):
        return self.filter(quantity__gt=0)

    def expiring_within(self, days: int, today: datetime.date | None = None):
        """Stocked batches expiring in the next ``days`` days, expired ones included."""
        today = today or timezone.localdate()
        return self.in_stock().filter(expiry_date__lte=today + datetime.timedelta(days=days))

    def first_expiry_first_out(self):
        return self.order_by('expiry_date', 'created_at')


class InventoryBatch(BaseModel):
    """
    A physical lot of a medicine held in stock.

    Aggregate on-hand quantity of a medicine is the sum of quantities over
    its batches that have not expired.
    """

    medicine = models.ForeignKey(
        Medicine,
        on_delete=models.CASCADE,
        related_name='batches',
        verbose_name=_('medicine'),
    )
    batch_number = models.CharField(_('batch number'), max_length=100)
    quantity = models.PositiveIntegerField(_('quantity'), default=0)
    expiry_date = models.DateField(_('expiry date'), db_index=True)
    supplier = models.CharField(_('supplier'), max_length=255, blank=True)
    unit_price = models.DecimalField(
        _('unit price'), max_digits=12, decimal_places=2,
        null=True, blank=True,
        validators=[MinValueValidator(0)],
    )
    location = models.CharField(
        _('location'), max_length=120, blank=True,
        help_text=_('Shelf, room or store holding the batch'),
    )

    objects = InventoryBatchQuerySet.as_manager()

    class Meta:
        db_table = 'inventory_items'
        verbose_name = _('inventory batch')
        verbose_name_plural = _('inventory batches')
        ordering = ['expiry_date']
        indexes = [
            models.Index(fields=['medicine', 'expiry_date'], name='batch_medicine_expiry_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['medicine', 'batch_number'],
                name='unique_batch_per_medicine',
            ),
        ]

    def __str__(self):
        return f'Batch {self.batch_number} — {self.medicine}'

    def is_expired(self, today: datetime.date | None = None) -> bool:
        return self.expiry_date < (today or timezone.localdate())

    def days_to_expiry(self, today: datetime.date | None = None) -> int:
        return (self.expiry_date - (today or timezone.localdate())).days

    @property
    def stock_value(self):
        if self.unit_price is None:
            return None
        return self.unit_price * self.quantity

    def clean(self):
        super().clean()
        if not self.batch_number or not self.batch_number.strip():
            raise ValidationError({'batch_number': _('Batch number is required.')})
