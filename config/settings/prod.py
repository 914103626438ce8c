"""Production settings for the SmartPark booking service.

Sensitive values must come from environment variables. Production runs on
PostgreSQL so that row locks and statement timeouts are enforced.
"""

import os

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F401,F403
from .base import DATABASES, DB_STATEMENT_TIMEOUT_MS, ENCRYPTION_KEY, SECRET_KEY

# Never run with debug enabled in production
DEBUG = False

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')

if SECRET_KEY == 'replace-me-in-production' or ENCRYPTION_KEY.startswith('dev-'):
    raise ImproperlyConfigured("DJANGO_SECRET_KEY and ENCRYPTION_KEY must be set in production")

DATABASES['default']['ENGINE'] = os.environ.get('DB_ENGINE', 'django.db.backends.postgresql')
DATABASES['default']['OPTIONS'] = {
    'options': f'-c statement_timeout={DB_STATEMENT_TIMEOUT_MS} -c lock_timeout={DB_STATEMENT_TIMEOUT_MS}',
}

# Configure secure proxies and cookies
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
