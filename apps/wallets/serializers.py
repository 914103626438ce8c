"""Serializers for wallets, their history and saved cards."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import SavedPaymentMethod, WalletTransaction
from .payments import CardMetadata, CardPayment
from .services import PaymentMethodService


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ["id", "amount", "kind", "description", "reference_id", "created_at"]
        read_only_fields = fields


class SavedPaymentMethodSerializer(serializers.ModelSerializer):
    """Masked card; the provider token is never returned."""

    class Meta:
        model = SavedPaymentMethod
        fields = ["id", "brand", "last4", "expiry", "holder_name", "created_at"]
        read_only_fields = fields


class CardPaymentInputSerializer(serializers.Serializer):
    """
    Card payment input: a saved card, or a fresh provider token.

    card_number is used only to derive the masked brand/last4 when the card
    is to be saved; it is not stored.
    """

    saved_payment_method_id = serializers.UUIDField(required=False)
    card_token = serializers.CharField(required=False, allow_blank=False, max_length=255)
    save_card = serializers.BooleanField(required=False, default=False)
    card_number = serializers.CharField(required=False, write_only=True, max_length=23)
    expiry = serializers.CharField(required=False, max_length=5)
    holder_name = serializers.CharField(required=False, max_length=100)

    def validate_card_fields(self, attrs):  # type: ignore
        if attrs.get("saved_payment_method_id"):
            if attrs.get("save_card"):
                raise serializers.ValidationError({"save_card": "This card is already saved."})
            return attrs
        if not attrs.get("card_token"):
            raise serializers.ValidationError(
                {"card_token": "Provide a card token or a saved payment method."}
            )
        if attrs.get("save_card"):
            missing = [name for name in ("card_number", "expiry", "holder_name") if not attrs.get(name)]
            if missing:
                raise serializers.ValidationError({name: "Required to save the card." for name in missing})
        return attrs

    def validate(self, attrs):  # type: ignore
        return self.validate_card_fields(attrs)

    @staticmethod
    def build_card_payment(user_id: str, data: dict) -> CardPayment:
        """
        Raises:
            PaymentMethodNotFound: If the saved card does not belong to the user
            InvalidCardDetails: If the card to be saved has an invalid number or expiry
        """
        if data.get("saved_payment_method_id"):
            return PaymentMethodService().card_payment(user_id, data["saved_payment_method_id"])

        card = None
        if data.get("save_card"):
            card = CardMetadata.from_card_number(data["card_number"], data["expiry"], data["holder_name"])
        return CardPayment(card_token=data["card_token"], card=card, save_card=bool(data.get("save_card")))


class TopUpSerializer(CardPaymentInputSerializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
