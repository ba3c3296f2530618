"""
Alerts — Views

Alert listing with server-side filters, lifecycle actions (mark read,
resolve, dismiss) and on-demand evaluation.

@file alerts/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import HasCapability, principal_for
from users.policy import Action

from .filters import AlertFilter
from .models import Alert
from .serializers import AlertSerializer, EvaluateRequestSerializer
from .services import AlertEngine


class AlertViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    GET    /api/v1/alerts/?alert_type=low_stock&severity=high&is_resolved=false
    POST   /api/v1/alerts/{id}/mark-read/
    POST   /api/v1/alerts/mark-all-read/
    POST   /api/v1/alerts/{id}/resolve/
    DELETE /api/v1/alerts/{id}/            (dismiss)
    POST   /api/v1/alerts/evaluate/
    """

    permission_classes = [IsAuthenticated, HasCapability]
    action_capabilities = {
        'mark_read': Action.MARK_ALERT_READ,
        'mark_all_read': Action.MARK_ALERT_READ,
        'resolve': Action.RESOLVE_ALERT,
        'destroy': Action.DISMISS_ALERT,
        'evaluate': Action.EVALUATE_ALERTS,
    }
    serializer_class = AlertSerializer
    filterset_class = AlertFilter
    search_fields = ['message', 'medicine__name']
    ordering_fields = ['created_at', 'updated_at', 'severity', 'alert_type']
    ordering = ['is_resolved', '-updated_at']

    def get_queryset(self):
        return Alert.objects.select_related('medicine')

    def destroy(self, request, pk=None):
        AlertEngine.dismiss(alert_id=pk, principal=principal_for(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='mark-read')
    def mark_read(self, request, pk=None):
        alert = AlertEngine.mark_read(alert_id=pk, principal=principal_for(request))
        return Response({'success': True, 'data': AlertSerializer(alert).data})

    @action(detail=False, methods=['post'], url_path='mark-all-read')
    def mark_all_read(self, request):
        updated = AlertEngine.mark_all_read(principal=principal_for(request))
        return Response({'success': True, 'data': {'updated': updated}})

    @action(detail=True, methods=['post'], url_path='resolve')
    def resolve(self, request, pk=None):
        alert = AlertEngine.resolve(alert_id=pk, principal=principal_for(request))
        return Response({'success': True, 'data': AlertSerializer(alert).data})

    @action(detail=False, methods=['post'], url_path='evaluate')
    def evaluate(self, request):
        ser = EvaluateRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = AlertEngine.request_evaluation(
            principal=principal_for(request),
            medicine_id=ser.validated_data.get('medicine'),
        )
        if 'alerts' in result:
            result = {**result, 'alerts': AlertSerializer(result['alerts'], many=True).data}
            return Response({'success': True, 'data': result})
        return Response({'success': True, 'data': result}, status=status.HTTP_202_ACCEPTED)
