"""Admin registration for parking spots (the spot directory)."""

from __future__ import annotations

from django.contrib import admin

from .models import Spot


@admin.register(Spot)
class SpotAdmin(admin.ModelAdmin):
    list_display = ("title", "latitude", "longitude", "is_available", "availability_checked_at")
    list_filter = ("is_available",)
    search_fields = ("title", "description")
    readonly_fields = ("is_available", "availability_checked_at", "created_at", "updated_at")
