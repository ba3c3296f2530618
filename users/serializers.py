"""
Users — Serializers

Read and write serializers for User, role assignment, notification
preferences and custom JWT token claims.

@file users/serializers.py
"""

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import NotificationPreference, User, UserRole
from .policy import Principal


# ---------------------------------------------------------------------------
# JWT — custom claims
# ---------------------------------------------------------------------------

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Inject email and effective role into the JWT payload."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = Principal.from_user(user).role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserReadSerializer(self.user).data
        return data


# ---------------------------------------------------------------------------
# User serializers
# ---------------------------------------------------------------------------

class UserReadSerializer(serializers.ModelSerializer):
    """Read-only user representation — returned in list / detail views."""

    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'avatar_url',
            'is_staff', 'is_active', 'date_joined', 'role',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_role(self, obj):
        return Principal.from_user(obj).role


class UserWriteSerializer(serializers.ModelSerializer):
    """Create / update users. Password is write-only."""

    password = serializers.CharField(write_only=True, required=False, min_length=10)

    class Meta:
        model = User
        fields = ['email', 'full_name', 'avatar_url', 'password', 'is_active']

    def validate_email(self, value):
        qs = User.objects.filter(email__iexact=value)
        if self.instance:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Email already in use.')
        return value.lower()


# ---------------------------------------------------------------------------
# Role serializers
# ---------------------------------------------------------------------------

class UserRoleWriteSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.RoleChoices.choices)


class UserRoleReadSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = UserRole
        fields = ['id', 'user', 'user_email', 'role', 'created_at', 'updated_at']
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Notification preferences
# ---------------------------------------------------------------------------

class NotificationPreferenceSerializer(serializers.ModelSerializer):

    class Meta:
        model = NotificationPreference
        fields = [
            'phone', 'email_enabled', 'sms_enabled', 'whatsapp_enabled',
            'low_stock_alerts', 'expiry_alerts', 'daily_summary', 'updated_at',
        ]
        read_only_fields = ['updated_at']

    def validate(self, attrs):
        sms = attrs.get('sms_enabled', getattr(self.instance, 'sms_enabled', False))
        whatsapp = attrs.get('whatsapp_enabled', getattr(self.instance, 'whatsapp_enabled', False))
        phone = attrs.get('phone', getattr(self.instance, 'phone', ''))
        if (sms or whatsapp) and not phone:
            raise serializers.ValidationError(
                {'phone': 'A phone number is required for SMS or WhatsApp notifications.'},
            )
        return attrs
