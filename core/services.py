"""
Core — Audit Service

Provides methods for writing audit log entries from any app.

@file core/services.py
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from django.forms.models import model_to_dict

from core.models import AuditLog

logger = logging.getLogger('medistock')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        if actor is not None and not getattr(actor, 'pk', None):
            actor = None
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
        )

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. Dates are ISO-formatted; UUIDs and Decimals stringified.
        """
        data = model_to_dict(instance, fields=fields)
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                cleaned[key] = None
            elif isinstance(value, Decimal):
                cleaned[key] = str(value)
            elif hasattr(value, 'isoformat'):
                cleaned[key] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                cleaned[key] = str(value)
            elif hasattr(value, 'pk'):
                cleaned[key] = str(value.pk)
            else:
                cleaned[key] = value
        return cleaned
