"""Django configuration package for the SmartPark booking service.

Holds the environment-specific settings modules, the URL root, the WSGI
entry point and the Celery application.
"""

# Import the Celery application as soon as Django starts so that
# shared tasks are bound to it.
from .celery import app as celery_app  # noqa: F401
