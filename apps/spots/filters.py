"""FilterSet for the spot directory."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Spot


class SpotFilterSet(django_filters.FilterSet):
    title = django_filters.CharFilter(field_name="title", lookup_expr="icontains")
    # Filters on live availability; the view supplies the busy spot ids
    available = django_filters.BooleanFilter(method="filter_available")

    class Meta:
        model = Spot
        fields = ["title"]

    def filter_available(self, queryset, name, value):  # type: ignore
        busy = self.request.busy_spot_ids if self.request is not None else set()
        if value:
            return queryset.exclude(pk__in=busy)
        return queryset.filter(pk__in=busy)
