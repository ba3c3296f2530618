"""
Alerts — URL Configuration

@file alerts/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AlertViewSet

app_name = 'alerts'

router = DefaultRouter()
router.register('', AlertViewSet, basename='alert')

urlpatterns = [
    path('', include(router.urls)),
]
