"""
Core — Engine Settings

Read access to the ``INVENTORY_ENGINE`` settings dict with built-in
defaults, so pure modules and services never hard-code thresholds.

@file core/conf.py
"""

from django.conf import settings

ENGINE_DEFAULTS = {
    'EXPIRY_WARNING_DAYS': 30,
    'EXPIRY_URGENT_DAYS': 7,
    'CRITICAL_FRACTION': 0.5,
    'DEFAULT_REORDER_LEVEL': 100,
    'DEFAULT_SAFETY_STOCK': 50,
    'LEAD_TIME_WEEKS': 2,
    'DEFAULT_FORECAST_WEEKS': 8,
    'HISTORY_WEEKS': 12,
    'MIN_HISTORY_WEEKS': 8,
    'CONFIDENCE_FLOOR': 40,
    'CONFIDENCE_CAP': 99,
    'STOCKOUT_ALERT_DAYS': 14,
    'LOW_COVER_DAYS': 30,
    'OVERSTOCK_WEEKS_OF_COVER': 26,
    'EVALUATION_CHUNK_SIZE': 50,
}


def engine_setting(name: str):
    """Return ``settings.INVENTORY_ENGINE[name]``, falling back to the default."""
    configured = getattr(settings, 'INVENTORY_ENGINE', {})
    if name in configured:
        return configured[name]
    return ENGINE_DEFAULTS[name]
