"""Serializers for the spot directory."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Spot


class SpotSerializer(serializers.ModelSerializer):
    """
    Spot with live availability.

    is_available is computed from bookings at request time; views pass the
    set of busy spot ids in the context so a list costs one query.
    """

    is_available = serializers.SerializerMethodField()

    class Meta:
        model = Spot
        fields = ["id", "title", "description", "latitude", "longitude", "is_available"]
        read_only_fields = fields

    def get_is_available(self, obj: Spot) -> bool:
        busy = self.context.get("busy_spot_ids")
        if busy is None:
            return obj.is_available
        return obj.id not in busy


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()

    def validate(self, attrs):  # type: ignore
        if attrs["end"] <= attrs["start"]:
            raise serializers.ValidationError({"end": "End time must be after start time."})
        return attrs
