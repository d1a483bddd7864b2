"""
Distribuidora — Development Settings

Local development overrides. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.development

@file config/settings/development.py
"""

from .base import *  # noqa: F401, F403

DEBUG = True

ALLOWED_HOSTS = ['*']
CORS_ALLOW_ALL_ORIGINS = True

INSTALLED_APPS += [  # noqa: F405
    'django_extensions',
]

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405

# Short reservations make expiry easy to exercise by hand.
DOCUMENT_RESERVATION_TTL_MINUTES = env.int('DOCUMENT_RESERVATION_TTL_MINUTES', default=2)  # noqa: F405

LOGGING['loggers']['distribuidora']['level'] = 'DEBUG'  # noqa: F405
