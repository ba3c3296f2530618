"""
Stock — Views

Consumption history: list, record a stock-out, correct a record, and the
weekly series used for charts and forecasting.

@file stock/views.py
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.conf import engine_setting
from core.exceptions import ResourceNotFoundError
from medicines.models import Medicine
from users.permissions import HasCapability, principal_for
from users.policy import Action

from .filters import ConsumptionRecordFilter
from .models import ConsumptionRecord
from .serializers import (
    ConsumptionRecordReadSerializer,
    ConsumptionSeriesSerializer,
    ConsumptionWriteSerializer,
    CorrectionSerializer,
)
from .services import ConsumptionService

MAX_SERIES_WEEKS = 52


class ConsumptionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Insert-only history: no update or delete routes."""

    permission_classes = [IsAuthenticated, HasCapability]
    action_capabilities = {
        'create': Action.RECORD_CONSUMPTION,
        'correct': Action.RECORD_CONSUMPTION,
    }
    filterset_class = ConsumptionRecordFilter
    search_fields = ['notes', 'medicine__name']
    ordering_fields = ['consumption_date', 'quantity_consumed', 'created_at']
    ordering = ['-consumption_date', '-created_at']
    serializer_class = ConsumptionRecordReadSerializer

    def get_queryset(self):
        return ConsumptionRecord.objects.select_related('medicine', 'recorded_by')

    def create(self, request, *args, **kwargs):
        ser = ConsumptionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        record = ConsumptionService.record_consumption(
            medicine_id=data['medicine'].pk,
            quantity=data['quantity'],
            consumption_date=data.get('consumption_date'),
            notes=data.get('notes', ''),
            principal=principal_for(request),
        )
        return Response(
            {'success': True, 'data': ConsumptionRecordReadSerializer(record).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path='correct')
    def correct(self, request, pk=None):
        ser = CorrectionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        correction = ConsumptionService.record_correction(
            record_id=pk,
            corrected_quantity=ser.validated_data['corrected_quantity'],
            notes=ser.validated_data.get('notes', ''),
            principal=principal_for(request),
        )
        return Response(
            {'success': True, 'data': ConsumptionRecordReadSerializer(correction).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['get'], url_path='weekly')
    def weekly(self, request):
        medicine_id = request.query_params.get('medicine')
        if not medicine_id:
            raise ValidationError({'medicine': 'This query parameter is required.'})
        try:
            weeks = int(request.query_params.get('weeks', engine_setting('HISTORY_WEEKS')))
        except ValueError:
            raise ValidationError({'weeks': 'Must be an integer.'})
        if not 1 <= weeks <= MAX_SERIES_WEEKS:
            raise ValidationError({'weeks': f'Must be between 1 and {MAX_SERIES_WEEKS}.'})

        try:
            medicine = Medicine.objects.get(pk=medicine_id)
        except (Medicine.DoesNotExist, ValueError, DjangoValidationError):
            raise ResourceNotFoundError(detail='Medicine not found.')

        series = ConsumptionService.weekly_series(medicine, weeks=weeks)
        return Response({'success': True, 'data': ConsumptionSeriesSerializer(series).data})
