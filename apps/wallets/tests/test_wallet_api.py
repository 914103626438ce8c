"""Tests for the wallet API."""

from __future__ import annotations

from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.wallets.ledger import LedgerStore
from apps.wallets.models import SavedPaymentMethod
from apps.wallets.payments import CardMetadata
from apps.wallets.services import PaymentMethodService


class WalletAPITests(APITestCase):
    def setUp(self) -> None:
        self.ledger = LedgerStore()
        self.client.credentials(HTTP_X_USER_ID="user-1")

    def test_new_user_has_empty_wallet(self) -> None:
        response = self.client.get(reverse("wallet-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["balance"]), Decimal("0.00"))
        self.assertEqual(response.data["currency"], "NZD")

    def test_top_up_and_history(self) -> None:
        response = self.client.post(
            reverse("wallet-top-up"), {"amount": "25.00", "card_token": "tok_visa"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(Decimal(response.data["balance"]), Decimal("25.00"))

        history = self.client.get(reverse("wallet-transactions")).data
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["kind"], "credit")
        self.assertEqual(history[0]["reference_id"], response.data["charge_id"])

    def test_top_up_over_limit(self) -> None:
        response = self.client.post(
            reverse("wallet-top-up"), {"amount": "1000.01", "card_token": "tok_visa"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "top_up_limit_exceeded")

    def test_top_up_with_declined_card(self) -> None:
        response = self.client.post(
            reverse("wallet-top-up"), {"amount": "10.00", "card_token": "tok_declined"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED)
        self.assertEqual(response.data["code"], "payment_declined")
        self.assertEqual(self.ledger.get_balance("user-1"), Decimal("0.00"))

    def test_top_up_with_invalid_card_to_save(self) -> None:
        payload = {
            "amount": "10.00",
            "card_token": "tok_visa",
            "save_card": True,
            "card_number": "1234",
            "expiry": "12/35",
            "holder_name": "Jo Bloggs",
        }
        response = self.client.post(reverse("wallet-top-up"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_card_details")
        self.assertEqual(self.ledger.get_balance("user-1"), Decimal("0.00"))

    def test_saved_cards_are_listed_masked_and_deletable_by_owner(self) -> None:
        payload = {
            "amount": "10.00",
            "card_token": "tok_visa",
            "save_card": True,
            "card_number": "4242424242424242",
            "expiry": "12/35",
            "holder_name": "Jo Bloggs",
        }
        self.client.post(reverse("wallet-top-up"), payload, format="json")

        methods = self.client.get(reverse("payment-method-list")).data
        self.assertEqual(len(methods), 1)
        self.assertEqual(methods[0]["last4"], "4242")
        self.assertNotIn("card_token", methods[0])

        detail_url = reverse("payment-method-detail", args=[methods[0]["id"]])
        self.client.credentials(HTTP_X_USER_ID="user-2")
        self.assertEqual(self.client.delete(detail_url).status_code, status.HTTP_404_NOT_FOUND)

        self.client.credentials(HTTP_X_USER_ID="user-1")
        self.assertEqual(self.client.delete(detail_url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SavedPaymentMethod.objects.exists())

    def test_top_up_with_saved_card(self) -> None:
        card = CardMetadata.from_card_number("4242424242424242", "12/35", "Jo Bloggs")
        method = PaymentMethodService().save("user-1", card, "tok_visa")

        response = self.client.post(
            reverse("wallet-top-up"),
            {"amount": "5.00", "saved_payment_method_id": str(method.id)},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(self.ledger.get_balance("user-1"), Decimal("5.00"))
