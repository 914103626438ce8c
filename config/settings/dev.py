"""Development settings for the SmartPark booking service.

Enables debug and human-readable console logging. Do not use these settings
in production!
"""

import structlog

from .base import *  # noqa: F401,F403
from .base import LOGGING

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

LOGGING["formatters"]["json"]["processor"] = structlog.dev.ConsoleRenderer(colors=False)
