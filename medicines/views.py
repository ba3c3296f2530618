"""
Medicines — Views

DRF ViewSets for the medicine catalogue, inventory batches and the
inventory dashboard summary.

@file medicines/views.py
"""

from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import HasCapability, principal_for
from users.policy import Action

from .classifier import assess_medicine
from .models import InventoryBatch, Medicine
from .serializers import (
    STOCK_STATUS_CHOICES,
    InventoryBatchReadSerializer,
    InventoryBatchWriteSerializer,
    InventorySummarySerializer,
    MedicineReadSerializer,
    MedicineWriteSerializer,
    NestedBatchWriteSerializer,
)
from .services import BatchService, InventoryService, MedicineService


def _changed_fields(instance, validated_data: dict) -> dict:
    """Only the fields whose submitted value differs from the stored one."""
    return {
        field: value for field, value in validated_data.items()
        if getattr(instance, field, None) != value
    }


class MedicineViewSet(viewsets.ModelViewSet):
    """
    Medicine catalogue.

    Reads need the view capability; writes are gated per action by the
    AccessPolicy (store managers may only adjust thresholds).
    """

    permission_classes = [IsAuthenticated, HasCapability]
    action_capabilities = {
        'create': Action.CREATE_MEDICINE,
        'update': Action.EDIT_MEDICINE,
        'partial_update': Action.EDIT_MEDICINE,
        'destroy': Action.DELETE_MEDICINE,
        'batches': Action.CREATE_BATCH,
    }
    filterset_fields = ['category', 'manufacturer']
    search_fields = ['name', 'generic_name', 'manufacturer']
    ordering_fields = ['name', 'category', 'reorder_level', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        return Medicine.objects.prefetch_related('batches')

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return MedicineReadSerializer
        return MedicineWriteSerializer

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        stock_status = self.request.query_params.get('stock_status')
        if self.action != 'list' or not stock_status:
            return queryset
        if stock_status not in dict(STOCK_STATUS_CHOICES):
            raise ValidationError({'stock_status': f'Unknown stock status "{stock_status}".'})
        today = timezone.localdate()
        return [
            medicine for medicine in queryset
            if assess_medicine(medicine, medicine.batches.all(), today).status == stock_status
        ]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        medicine = MedicineService.create_medicine(
            principal=principal_for(request), **serializer.validated_data,
        )
        return Response(
            {'success': True, 'data': MedicineReadSerializer(medicine).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        medicine = MedicineService.update_medicine(
            medicine_id=instance.pk,
            principal=principal_for(request),
            **_changed_fields(instance, serializer.validated_data),
        )
        return Response({'success': True, 'data': MedicineReadSerializer(medicine).data})

    def destroy(self, request, *args, **kwargs):
        MedicineService.delete_medicine(
            medicine_id=self.get_object().pk, principal=principal_for(request),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='summary')
    def summary(self, request):
        data = InventoryService.dashboard_summary()
        return Response({'success': True, 'data': InventorySummarySerializer(data).data})

    @action(detail=True, methods=['get', 'post'], url_path='batches')
    def batches(self, request, pk=None):
        medicine = self.get_object()

        if request.method == 'GET':
            batches = medicine.batches.select_related('medicine').first_expiry_first_out()
            page = self.paginate_queryset(batches)
            if page is not None:
                ser = InventoryBatchReadSerializer(page, many=True)
                return self.get_paginated_response(ser.data)
            ser = InventoryBatchReadSerializer(batches, many=True)
            return Response({'success': True, 'data': ser.data})

        ser = NestedBatchWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        batch = BatchService.create_batch(
            principal=principal_for(request), medicine=medicine, **ser.validated_data,
        )
        return Response(
            {'success': True, 'data': InventoryBatchReadSerializer(batch).data},
            status=status.HTTP_201_CREATED,
        )


class InventoryBatchViewSet(viewsets.ModelViewSet):
    """Top-level batch endpoints for cross-medicine stock queries."""

    permission_classes = [IsAuthenticated, HasCapability]
    action_capabilities = {
        'create': Action.CREATE_BATCH,
        'update': Action.EDIT_BATCH,
        'partial_update': Action.EDIT_BATCH,
        'destroy': Action.DELETE_BATCH,
    }
    filterset_fields = ['medicine', 'supplier', 'location']
    search_fields = ['batch_number', 'supplier', 'medicine__name']
    ordering_fields = ['expiry_date', 'quantity', 'created_at', 'batch_number']
    ordering = ['expiry_date']

    def get_queryset(self):
        return InventoryBatch.objects.select_related('medicine')

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve', 'expiring'):
            return InventoryBatchReadSerializer
        return InventoryBatchWriteSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        batch = BatchService.create_batch(
            principal=principal_for(request), medicine=data.pop('medicine'), **data,
        )
        return Response(
            {'success': True, 'data': InventoryBatchReadSerializer(batch).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        batch = BatchService.update_batch(
            batch_id=instance.pk,
            principal=principal_for(request),
            **_changed_fields(instance, serializer.validated_data),
        )
        return Response({'success': True, 'data': InventoryBatchReadSerializer(batch).data})

    def destroy(self, request, *args, **kwargs):
        BatchService.delete_batch(batch_id=self.get_object().pk, principal=principal_for(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='expiring')
    def expiring(self, request):
        try:
            days = int(request.query_params.get('days', 30))
        except ValueError:
            raise ValidationError({'days': 'Must be an integer.'})
        batches = self.filter_queryset(self.get_queryset()).expiring_within(days)
        page = self.paginate_queryset(batches)
        if page is not None:
            ser = InventoryBatchReadSerializer(page, many=True)
            return self.get_paginated_response(ser.data)
        ser = InventoryBatchReadSerializer(batches, many=True)
        return Response({'success': True, 'data': ser.data})
