"""
MediStock — Test Settings

Fast, self-contained settings for pytest. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.test

@file config/settings/test.py
"""

from .base import *  # noqa: F401, F403

DEBUG = False

SECRET_KEY = 'test-secret-key-not-for-production-use-0123456789'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    },
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

ALERT_NOTIFICATION_DISPATCHER = 'alerts.notifications.LoggingNotificationDispatcher'

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = (  # noqa: F405
    'core.renderers.StandardJSONRenderer',
)

LOGGING['loggers']['medistock']['level'] = 'WARNING'  # noqa: F405
