import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("smartpark")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Completes bookings whose window has ended and refreshes spot availability
    "sweep-expired-bookings": {
        "task": "bookings.sweep_expired_bookings",
        "schedule": float(os.environ.get("BOOKING_SWEEP_INTERVAL_SECONDS", 60)),
        "options": {"expires": 50},
    },
}

app.conf.timezone = "UTC"
