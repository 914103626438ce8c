"""Tests for card handling, top-ups and saved payment methods."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError, connection

from conftest import OTHER_USER, USER
from shared.domain.exceptions import ReconciliationRequired
from apps.wallets.exceptions import (
    InvalidAmount,
    InvalidCardDetails,
    PaymentDeclined,
    PaymentMethodNotFound,
    TopUpLimitExceeded,
)
from apps.wallets.models import SavedPaymentMethod, WalletTransaction
from apps.wallets.payments import CardMetadata, CardPayment, detect_brand, validate_expiry
from apps.wallets.services import PaymentMethodService, TopUpService

TODAY = date(2030, 5, 1)


class TestCardDetails:
    @pytest.mark.parametrize(
        "number, brand",
        [
            ("4242 4242 4242 4242", "Visa"),
            ("5555555555554444", "Mastercard"),
            ("3782822463100050", "Amex"),
            ("6011111111111117", "Card"),
        ],
    )
    def test_brand_from_leading_digit(self, number, brand):
        assert detect_brand(number) == brand

    def test_only_last_four_digits_are_kept(self):
        card = CardMetadata.from_card_number("4242 4242 4242 1234", "12/31", " Jo Bloggs ", today=TODAY)
        assert card == CardMetadata(brand="Visa", last4="1234", expiry="12/31", holder_name="Jo Bloggs")

    @pytest.mark.parametrize("number", ["4242", "4242 4242 4242 424x", ""])
    def test_card_number_must_have_sixteen_digits(self, number):
        with pytest.raises(InvalidCardDetails):
            CardMetadata.from_card_number(number, "12/31", "Jo Bloggs", today=TODAY)

    @pytest.mark.parametrize("expiry", ["1231", "13/31", "04/30"])
    def test_bad_or_past_expiry(self, expiry):
        with pytest.raises(InvalidCardDetails):
            validate_expiry(expiry, today=TODAY)

    def test_current_month_has_not_expired(self):
        assert validate_expiry("05/30", today=TODAY) == "05/30"

    def test_saving_requires_card_metadata(self):
        with pytest.raises(InvalidCardDetails):
            CardPayment(card_token="tok_visa", save_card=True)


class TestSimulatedGateway:
    def test_approves_with_a_charge_id(self, gateway):
        assert gateway.charge(USER, Decimal("5.00"), "tok_visa").startswith("ch_")

    def test_declines_configured_tokens(self, gateway):
        with pytest.raises(PaymentDeclined):
            gateway.charge(USER, Decimal("5.00"), "tok_declined")


@pytest.mark.django_db
class TestTopUp:
    def service(self, ledger, gateway):
        return TopUpService(ledger=ledger, gateway=gateway)

    def test_top_up_credits_wallet_with_charge_reference(self, ledger, gateway):
        receipt = self.service(ledger, gateway).top_up(USER, "25.00", CardPayment(card_token="tok_visa"))

        assert receipt.balance == Decimal("25.00")
        txn = WalletTransaction.objects.get(pk=receipt.transaction_id)
        assert txn.reference_id == receipt.charge_id

    def test_limit_is_inclusive(self, ledger, gateway):
        service = self.service(ledger, gateway)
        service.top_up(USER, "1000.00", CardPayment(card_token="tok_visa"))

        with pytest.raises(TopUpLimitExceeded):
            service.top_up(USER, "1000.01", CardPayment(card_token="tok_visa"))
        assert ledger.get_balance(USER) == Decimal("1000.00")

    def test_zero_amount_is_rejected_before_charging(self, ledger, gateway):
        with mock.patch.object(gateway, "charge") as charge:
            with pytest.raises(InvalidAmount):
                self.service(ledger, gateway).top_up(USER, "0", CardPayment(card_token="tok_visa"))
        charge.assert_not_called()

    def test_declined_card_leaves_wallet_untouched(self, ledger, gateway):
        with pytest.raises(PaymentDeclined):
            self.service(ledger, gateway).top_up(USER, "10.00", CardPayment(card_token="tok_declined"))
        assert ledger.get_balance(USER) == Decimal("0.00")

    def test_card_is_saved_on_opt_in(self, ledger, gateway):
        card = CardMetadata.from_card_number("4242424242424242", "12/35", "Jo Bloggs")
        self.service(ledger, gateway).top_up(
            USER, "10.00", CardPayment(card_token="tok_visa", card=card, save_card=True),
        )

        method = SavedPaymentMethod.objects.get(user_id=USER)
        assert (method.brand, method.last4) == ("Visa", "4242")
        assert method.card_token == "tok_visa"

    def test_failed_credit_after_charge_needs_reconciliation(self, ledger, gateway, bus):
        with mock.patch.object(ledger, "credit", side_effect=DatabaseError("disk full")):
            with mock.patch("shared.application.message_bus.message_bus", bus):
                with pytest.raises(ReconciliationRequired):
                    self.service(ledger, gateway).top_up(USER, "10.00", CardPayment(card_token="tok_visa"))

        assert len(bus.published) == 1
        assert bus.published[0].payment_method == "card"


@pytest.mark.django_db
class TestSavedPaymentMethods:
    def save_card(self, user_id=USER, number="4242424242424242", token="tok_visa"):
        card = CardMetadata.from_card_number(number, "12/35", "Jo Bloggs")
        return PaymentMethodService().save(user_id, card, token)

    def test_token_is_encrypted_at_rest(self):
        method = self.save_card()

        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT card_token FROM wallets_savedpaymentmethod WHERE id = %s",
                [method.id.hex],
            )
            stored = cursor.fetchone()[0]

        assert stored != "tok_visa"
        assert SavedPaymentMethod.objects.get(pk=method.id).card_token == "tok_visa"

    def test_saving_the_same_card_again_updates_it(self):
        self.save_card(token="tok_old")
        self.save_card(token="tok_new")

        methods = PaymentMethodService().list_for(USER)
        assert len(methods) == 1
        assert methods[0].card_token == "tok_new"

    def test_owner_only_delete(self):
        method = self.save_card()

        with pytest.raises(PaymentMethodNotFound):
            PaymentMethodService().delete(OTHER_USER, method.id)

        PaymentMethodService().delete(USER, method.id)
        assert not SavedPaymentMethod.objects.exists()

    def test_paying_with_a_saved_card_uses_its_token(self):
        method = self.save_card(token="tok_saved")
        payment = PaymentMethodService().card_payment(USER, method.id)
        assert payment.card_token == "tok_saved"
        assert not payment.save_card
