"""
Users — Auth URL Configuration

Token and current-user endpoints routed under /api/v1/auth/.

@file users/urls.py
"""

from django.urls import path

from .views import LoginView, MeView, NotificationPreferenceView, TokenRefreshAPIView

app_name = 'auth'

urlpatterns = [
    path('login', LoginView.as_view(), name='login'),
    path('refresh', TokenRefreshAPIView.as_view(), name='token-refresh'),
    path('me', MeView.as_view(), name='me'),
    path('me/preferences', NotificationPreferenceView.as_view(), name='preferences'),
]
