"""FilterSet for the caller's bookings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=Booking.Status.choices)
    starts_after = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="gte")
    starts_before = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="lt")

    class Meta:
        model = Booking
        fields = ["status", "spot"]
