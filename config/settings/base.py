"""Base settings for all environments.

Common configuration for the SmartPark booking service: Django, Django REST
Framework, Celery and the parking domain settings (pricing, booking and
cancellation rules, wallet limits and the payment gateway). Environment
specific values are overridden in `dev.py`, `prod.py` and `test.py`.
"""

import os
from decimal import Decimal
from pathlib import Path

import structlog

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'replace-me-in-production')

# Encryption key for saved payment method tokens
ENCRYPTION_KEY = os.environ.get('ENCRYPTION_KEY', 'dev-encryption-key-replace-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS: list[str] = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    # Third‑party apps
    'rest_framework',
    'django_filters',
    'drf_spectacular',
    # Domain apps
    'apps.spots',
    'apps.bookings',
    'apps.wallets',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
# https://docs.djangoproject.com/en/5.0/ref/settings/#databases
#
# Row locks (SELECT ... FOR UPDATE) guard the per-spot and per-wallet critical
# sections, so production must run on PostgreSQL. DB_STATEMENT_TIMEOUT_MS bounds
# every statement, lock waits included.

DB_STATEMENT_TIMEOUT_MS = int(os.environ.get('DB_STATEMENT_TIMEOUT_MS', 5000))

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', BASE_DIR / 'db.sqlite3'),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
        'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', 60)),
    }
}

# Internationalization

LANGUAGE_CODE = 'en-nz'

TIME_ZONE = 'Pacific/Auckland'

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Django Rest Framework
# The external auth gateway authenticates the caller and forwards the opaque
# user identifier in EXTERNAL_AUTH_HEADER.
EXTERNAL_AUTH_HEADER = os.environ.get('EXTERNAL_AUTH_HEADER', 'X-User-Id')

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'apps.core.authentication.ExternalUserAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'apps.core.exceptions.domain_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'SmartPark API',
    'DESCRIPTION': 'Parking spot booking and wallet API',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
}

# Celery configuration (Broker and Result backend handled in environment)
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
CELERY_TASK_TIME_LIMIT = int(os.environ.get('CELERY_TASK_TIME_LIMIT', 120))

# ============================================================================
# Parking domain
# ============================================================================

# Flat price per started hour, the same for every spot.
PARKING_HOURLY_RATE = Decimal(os.environ.get('PARKING_HOURLY_RATE', '1.00'))
PARKING_CURRENCY = os.environ.get('PARKING_CURRENCY', 'NZD')

BOOKING_MIN_DURATION_HOURS = int(os.environ.get('BOOKING_MIN_DURATION_HOURS', 1))
BOOKING_CANCELLATION_NOTICE_HOURS = int(os.environ.get('BOOKING_CANCELLATION_NOTICE_HOURS', 2))

# Read-only availability checks are retried on transient database errors.
AVAILABILITY_CHECK_RETRIES = int(os.environ.get('AVAILABILITY_CHECK_RETRIES', 3))
AVAILABILITY_CHECK_BACKOFF_SECONDS = float(os.environ.get('AVAILABILITY_CHECK_BACKOFF_SECONDS', 0.05))

WALLET_MAX_TOP_UP = Decimal(os.environ.get('WALLET_MAX_TOP_UP', '1000.00'))

# External card payment capability
PAYMENT_GATEWAY = os.environ.get('PAYMENT_GATEWAY', 'apps.wallets.payments.SimulatedCardGateway')
PAYMENT_GATEWAY_DECLINE_TOKENS = [
    token for token in os.environ.get('PAYMENT_GATEWAY_DECLINE_TOKENS', 'tok_declined').split(',') if token
]

# ============================================================================
# Logging
# ============================================================================

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
            "foreign_pre_chain": [
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django.db.backends": {"level": "WARNING"},
        "apps": {"level": LOG_LEVEL, "propagate": True},
        "shared": {"level": LOG_LEVEL, "propagate": True},
        "bookings.audit": {"level": "INFO", "propagate": True},
        "reconciliation": {"level": "WARNING", "propagate": True},
    },
}
