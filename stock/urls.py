"""
Stock — URL Configuration

@file stock/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ConsumptionViewSet

app_name = 'stock'

router = DefaultRouter()
router.register('', ConsumptionViewSet, basename='consumption')

urlpatterns = [
    path('', include(router.urls)),
]
