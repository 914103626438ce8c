"""Test settings: in-memory SQLite, eager Celery, quiet logging."""

from .base import *  # noqa: F401,F403
from .base import LOGGING

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ENCRYPTION_KEY = 'test-encryption-key'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PAYMENT_GATEWAY = 'apps.wallets.payments.SimulatedCardGateway'
PAYMENT_GATEWAY_DECLINE_TOKENS = ['tok_declined']

AVAILABILITY_CHECK_BACKOFF_SECONDS = 0

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING["root"]["level"] = "WARNING"
