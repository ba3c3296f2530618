"""
Forecasting — Views

Read-only forecast endpoints: per-medicine list and detail, and the
reorder bucket summary for the dashboard.

@file forecasting/views.py
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from medicines.models import Medicine
from users.permissions import HasCapability

from .serializers import ForecastQuerySerializer, ForecastResultSerializer, ForecastSummarySerializer
from .services import ForecastService


class ForecastViewSet(viewsets.GenericViewSet):
    """
    GET /api/v1/forecasts/?horizon=8&bucket=critical
    GET /api/v1/forecasts/{medicine_id}/?horizon=12
    GET /api/v1/forecasts/summary/?horizon=4
    """

    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = ForecastResultSerializer
    filterset_fields = ['category']
    search_fields = ['name', 'generic_name']
    ordering_fields = ['name', 'category']
    ordering = ['name']

    def get_queryset(self):
        return Medicine.objects.all()

    def _query(self) -> dict:
        ser = ForecastQuerySerializer(data=self.request.query_params)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    def list(self, request):
        params = self._query()
        results = ForecastService.forecast_all(
            params.get('horizon'), queryset=self.filter_queryset(self.get_queryset()),
        )
        if params.get('bucket'):
            results = [result for result in results if result.bucket == params['bucket']]

        page = self.paginate_queryset(results)
        if page is not None:
            return self.get_paginated_response(ForecastResultSerializer(page, many=True).data)
        return Response({'success': True, 'data': ForecastResultSerializer(results, many=True).data})

    def retrieve(self, request, pk=None):
        params = self._query()
        result = ForecastService.forecast_by_id(pk, params.get('horizon'))
        return Response({'success': True, 'data': ForecastResultSerializer(result).data})

    @action(detail=False, methods=['get'], url_path='summary')
    def summary(self, request):
        params = self._query()
        data = ForecastService.bucket_summary(params.get('horizon'))
        return Response({'success': True, 'data': ForecastSummarySerializer(data).data})
