"""API views for the booking domain."""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.bootstrap import BookingEngine, build_booking_engine
from .filters import BookingFilterSet
from .models import Booking
from .serializers import BookingCancelSerializer, BookingCreateSerializer, BookingSerializer

logger = logging.getLogger(__name__)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings of the authenticated user.

    Writes go through the booking engine; other users' bookings are
    invisible and answer 404.
    """

    queryset = Booking.objects.select_related("spot").all()
    serializer_class = BookingSerializer
    filterset_class = BookingFilterSet
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(user_id=self.request.user.user_id).order_by("-created_at")

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        return BookingSerializer

    def get_engine(self) -> BookingEngine:
        return build_booking_engine()

    @extend_schema(request=BookingCreateSerializer, responses={201: BookingSerializer})
    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user_id = request.user.user_id
        data = serializer.validated_data
        booking = self.get_engine().create_booking(
            user_id=user_id,
            spot_id=data["spot_id"],
            start=data["start_time"],
            end=data["end_time"],
            payment=serializer.build_payment(user_id),
            booking_id=data.get("booking_id"),
        )

        row = self.get_queryset().get(pk=booking.id)
        return Response(BookingSerializer(row).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=BookingCancelSerializer, responses={200: BookingSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = self.get_engine().cancel(
            booking_id=pk,
            requested_by=request.user.user_id,
            reason=serializer.validated_data["reason"],
        )

        row = self.get_queryset().get(pk=booking.id)
        return Response(BookingSerializer(row).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        self.get_engine().delete(booking_id=kwargs["pk"], requested_by=request.user.user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
