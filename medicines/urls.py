"""
Medicines — URL Configuration

@file medicines/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import InventoryBatchViewSet, MedicineViewSet

app_name = 'medicines'

router = DefaultRouter()
router.register('', MedicineViewSet, basename='medicine')

batch_router = DefaultRouter()
batch_router.register('', InventoryBatchViewSet, basename='batch')

urlpatterns = [
    path('batches/', include((batch_router.urls, 'batches'))),
    path('', include(router.urls)),
]
