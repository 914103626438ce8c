"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.wallets.payments import WalletPayment
from apps.wallets.serializers import CardPaymentInputSerializer

from .models import Booking


class BookingSerializer(serializers.ModelSerializer):
    """Booking as shown to its owner."""

    spot_title = serializers.CharField(source="spot.title", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "spot",
            "spot_title",
            "start_time",
            "end_time",
            "status",
            "price",
            "currency",
            "payment_method",
            "payment_reference",
            "cancellation_reason",
            "confirmed_at",
            "completed_at",
            "canceled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(CardPaymentInputSerializer):
    """
    Booking request.

    With payment_method "card" the card fields follow the same rules as a
    wallet top-up. booking_id lets a client resubmit safely.
    """

    spot_id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    payment_method = serializers.ChoiceField(choices=Booking.PaymentMethod.choices)
    booking_id = serializers.UUIDField(required=False)

    def validate(self, attrs):  # type: ignore
        if attrs["payment_method"] == Booking.PaymentMethod.CARD:
            return self.validate_card_fields(attrs)
        return attrs

    def build_payment(self, user_id: str):  # type: ignore
        data = self.validated_data
        if data["payment_method"] == Booking.PaymentMethod.WALLET:
            return WalletPayment()
        return self.build_card_payment(user_id, data)


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
