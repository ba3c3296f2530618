"""
Forecasting — URL Configuration

@file forecasting/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ForecastViewSet

app_name = 'forecasting'

router = DefaultRouter()
router.register('', ForecastViewSet, basename='forecast')

urlpatterns = [
    path('', include(router.urls)),
]
