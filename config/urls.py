"""
MediStock — Root URL Configuration

All API endpoints are namespaced under /api/v1/.
The DRF browsable API is available for route inspection in development.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse

admin.site.site_header = 'MediStock Administration'
admin.site.site_title = 'MediStock'
admin.site.index_title = 'Inventory Health & Forecasting'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """MediStock API v1 — endpoint directory."""
    return Response({
        'auth': {
            'login': reverse('api-v1:auth:login', request=request, format=format),
            'refresh': reverse('api-v1:auth:token-refresh', request=request, format=format),
            'me': reverse('api-v1:auth:me', request=request, format=format),
            'preferences': reverse('api-v1:auth:preferences', request=request, format=format),
        },
        'users': reverse('api-v1:users:user-list', request=request, format=format),
        'medicines': {
            'list': reverse('api-v1:medicines:medicine-list', request=request, format=format),
            'summary': reverse('api-v1:medicines:medicine-summary', request=request, format=format),
            'batches': reverse('api-v1:medicines:batches:batch-list', request=request, format=format),
        },
        'consumption': reverse('api-v1:stock:consumption-list', request=request, format=format),
        'forecasts': {
            'list': reverse('api-v1:forecasting:forecast-list', request=request, format=format),
            'summary': reverse('api-v1:forecasting:forecast-summary', request=request, format=format),
        },
        'alerts': reverse('api-v1:alerts:alert-list', request=request, format=format),
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/', include('users.urls', namespace='auth')),
    path('users/', include('users.urls_users', namespace='users')),
    path('medicines/', include('medicines.urls', namespace='medicines')),
    path('consumption/', include('stock.urls', namespace='stock')),
    path('forecasts/', include('forecasting.urls', namespace='forecasting')),
    path('alerts/', include('alerts.urls', namespace='alerts')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
