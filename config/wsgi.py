"""WSGI entry point for the SmartPark booking service.

Production servers should export DJANGO_SETTINGS_MODULE=config.settings.prod.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
