"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "spot",
        "user_id",
        "status",
        "payment_method",
        "start_time",
        "end_time",
        "price",
        "created_at",
    )
    list_filter = ("status", "payment_method", "start_time")
    search_fields = ("id", "user_id", "spot__title", "payment_reference")
    list_select_related = ("spot",)
    readonly_fields = (
        "id",
        "user_id",
        "spot",
        "start_time",
        "end_time",
        "status",
        "payment_method",
        "payment_reference",
        "price",
        "currency",
        "confirmed_at",
        "completed_at",
        "canceled_at",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        # Bookings are created through the booking engine only
        return False
