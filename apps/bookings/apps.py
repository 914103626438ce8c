from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"

    def ready(self):
        # Registers the domain event handlers on the message bus
        from . import handlers  # noqa: F401
