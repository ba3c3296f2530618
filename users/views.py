"""
Users — Views

Auth endpoints (token obtain/refresh, current user, notification
preferences) and the user management ViewSet with role assignment.

@file users/views.py
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import User
from .permissions import CanManageUsers, principal_for
from .serializers import (
    CustomTokenObtainPairSerializer,
    NotificationPreferenceSerializer,
    UserReadSerializer,
    UserRoleReadSerializer,
    UserRoleWriteSerializer,
    UserWriteSerializer,
)
from .services import PreferenceService, RoleService, UserService

logger = logging.getLogger('medistock')


# ---------------------------------------------------------------------------
# Auth views
# ---------------------------------------------------------------------------

class LoginView(TokenObtainPairView):
    """POST /api/v1/auth/login — Authenticate by email and obtain a JWT pair."""
    permission_classes = [AllowAny]
    serializer_class = CustomTokenObtainPairSerializer


class TokenRefreshAPIView(TokenRefreshView):
    """POST /api/v1/auth/refresh — Rotate refresh token."""
    pass


class MeView(APIView):
    """GET /api/v1/auth/me — Return the current authenticated user."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            'success': True,
            'data': UserReadSerializer(request.user).data,
        })


class NotificationPreferenceView(APIView):
    """GET / PATCH /api/v1/auth/me/preferences — Own notification settings."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        preference = PreferenceService.get_preferences(request.user)
        return Response({
            'success': True,
            'data': NotificationPreferenceSerializer(preference).data,
        })

    def patch(self, request):
        current = PreferenceService.get_preferences(request.user)
        serializer = NotificationPreferenceSerializer(current, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        preference = PreferenceService.update_preferences(
            user=request.user, **serializer.validated_data,
        )
        return Response({
            'success': True,
            'data': NotificationPreferenceSerializer(preference).data,
        })


# ---------------------------------------------------------------------------
# User management ViewSet
# ---------------------------------------------------------------------------

class UserViewSet(viewsets.ModelViewSet):
    """
    CRUD for user accounts plus role assignment. Admin only; deleting a
    user deactivates the account.
    """

    permission_classes = [IsAuthenticated, CanManageUsers]
    filterset_fields = ['is_active', 'is_staff', 'user_role__role']
    search_fields = ['email', 'full_name']
    ordering_fields = ['created_at', 'email', 'full_name']
    ordering = ['-created_at']

    def get_queryset(self):
        return User.objects.select_related('user_role')

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return UserReadSerializer
        return UserWriteSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        password = data.pop('password', None)
        user = UserService.create_user(
            email=data.pop('email'),
            password=password,
            principal=principal_for(request),
            **data,
        )
        return Response(
            {'success': True, 'data': UserReadSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        password = data.pop('password', None)
        user = UserService.update_user(
            user_id=instance.pk,
            principal=principal_for(request),
            **data,
        )
        if password:
            user.set_password(password)
            user.save(update_fields=['password'])
        return Response({'success': True, 'data': UserReadSerializer(user).data})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        UserService.update_user(
            user_id=instance.pk,
            principal=principal_for(request),
            is_active=False,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='assign-role')
    def assign_role(self, request, pk=None):
        serializer = UserRoleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_role = RoleService.assign_role(
            user=self.get_object(),
            role=serializer.validated_data['role'],
            principal=principal_for(request),
        )
        return Response(
            {'success': True, 'data': UserRoleReadSerializer(user_role).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path='revoke-role')
    def revoke_role(self, request, pk=None):
        RoleService.revoke_role(user=self.get_object(), principal=principal_for(request))
        return Response({'success': True, 'data': None})
