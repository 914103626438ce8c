"""Read-only API over the spot directory with live availability."""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema  # type: ignore
from rest_framework import viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.availability import AvailabilityIndex
from shared.domain.value_objects import TimeWindow

from .filters import SpotFilterSet
from .models import Spot
from .serializers import AvailabilityQuerySerializer, SpotSerializer

logger = logging.getLogger(__name__)


class SpotViewSet(viewsets.ReadOnlyModelViewSet):
    """List and retrieve spots; spots themselves are managed in the admin."""

    queryset = Spot.objects.all()
    serializer_class = SpotSerializer
    filterset_class = SpotFilterSet
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_availability_index(self) -> AvailabilityIndex:
        return AvailabilityIndex()

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        # One query per request for every spot's live flag
        request.busy_spot_ids = self.get_availability_index().busy_spot_ids()

    def get_serializer_context(self):  # type: ignore
        context = super().get_serializer_context()
        context["busy_spot_ids"] = getattr(self.request, "busy_spot_ids", None)
        return context

    @extend_schema(
        parameters=[
            OpenApiParameter("start", str, description="ISO 8601 start time"),
            OpenApiParameter("end", str, description="ISO 8601 end time"),
        ],
    )
    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        """Whether the spot is free for the whole [start, end) window."""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        window = TimeWindow(query.validated_data["start"], query.validated_data["end"])

        available = self.get_availability_index().check_available(pk, window)
        return Response({
            "spot_id": pk,
            "start": window.start,
            "end": window.end,
            "available": available,
        })
