"""
Medicines — Serializers

Read and write serializers for Medicine and InventoryBatch, plus the
dashboard summary payload.

@file medicines/serializers.py
"""

from django.utils import timezone
from rest_framework import serializers

from .classifier import StockStatus, assess_medicine
from .models import InventoryBatch, Medicine


# ---------------------------------------------------------------------------
# Medicine
# ---------------------------------------------------------------------------

class MedicineReadSerializer(serializers.ModelSerializer):
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    on_hand = serializers.SerializerMethodField()
    stock_status = serializers.SerializerMethodField()
    nearest_expiry = serializers.SerializerMethodField()
    batches_count = serializers.SerializerMethodField()

    class Meta:
        model = Medicine
        fields = [
            'id', 'name', 'generic_name',
            'category', 'category_display',
            'manufacturer', 'unit', 'reorder_level', 'safety_stock',
            'on_hand', 'stock_status', 'nearest_expiry', 'batches_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def _assessment(self, obj):
        cache = self.context.setdefault('_assessments', {})
        if obj.pk not in cache:
            cache[obj.pk] = assess_medicine(obj, obj.batches.all(), timezone.localdate())
        return cache[obj.pk]

    def get_on_hand(self, obj):
        return self._assessment(obj).on_hand

    def get_stock_status(self, obj):
        return self._assessment(obj).status.value

    def get_nearest_expiry(self, obj):
        nearest = self._assessment(obj).nearest_expiry
        return nearest.isoformat() if nearest else None

    def get_batches_count(self, obj):
        return len(obj.batches.all())


class MedicineWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Medicine
        fields = [
            'name', 'generic_name', 'category', 'manufacturer',
            'unit', 'reorder_level', 'safety_stock',
        ]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required.')
        return value


# ---------------------------------------------------------------------------
# InventoryBatch
# ---------------------------------------------------------------------------

class InventoryBatchReadSerializer(serializers.ModelSerializer):
    medicine_name = serializers.CharField(source='medicine.name', read_only=True)
    days_to_expiry = serializers.SerializerMethodField()
    is_expired = serializers.SerializerMethodField()
    stock_value = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryBatch
        fields = [
            'id', 'medicine', 'medicine_name', 'batch_number',
            'quantity', 'expiry_date', 'days_to_expiry', 'is_expired',
            'supplier', 'unit_price', 'stock_value', 'location',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_days_to_expiry(self, obj):
        return obj.days_to_expiry()

    def get_is_expired(self, obj):
        return obj.is_expired()


class InventoryBatchWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryBatch
        fields = [
            'medicine', 'batch_number', 'quantity', 'expiry_date',
            'supplier', 'unit_price', 'location',
        ]
        # Uniqueness is enforced in BatchService with a 409.
        validators = []

    def validate_batch_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Batch number is required.')
        return value


class NestedBatchWriteSerializer(InventoryBatchWriteSerializer):
    """Batch receipt under /medicines/{id}/batches/ — medicine comes from the URL."""

    class Meta(InventoryBatchWriteSerializer.Meta):
        fields = [
            'batch_number', 'quantity', 'expiry_date',
            'supplier', 'unit_price', 'location',
        ]


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class InventorySummarySerializer(serializers.Serializer):
    total_medicines = serializers.IntegerField()
    low_stock_count = serializers.IntegerField()
    expiring_batches = serializers.IntegerField()
    expired_batches = serializers.IntegerField()
    total_stock_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    status_breakdown = serializers.DictField(child=serializers.IntegerField())
    expiry_warning_days = serializers.IntegerField()
    as_of = serializers.DateField()


STOCK_STATUS_CHOICES = StockStatus.choices
