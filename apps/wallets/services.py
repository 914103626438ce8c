"""Wallet top-up and saved payment method services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.conf import settings
from django.db import DatabaseError, transaction

from shared.application.alerts import require_reconciliation

from .exceptions import PaymentMethodNotFound, TopUpLimitExceeded
from .ledger import LedgerStore, normalize_amount
from .models import SavedPaymentMethod
from .payments import CardMetadata, CardPayment, PaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)


class PaymentMethodService:
    """Saved cards: masked metadata plus the provider token, scoped to their owner."""

    def list_for(self, user_id: str) -> list[SavedPaymentMethod]:
        return list(SavedPaymentMethod.objects.filter(user_id=user_id).order_by("-created_at"))

    def get_for(self, user_id: str, method_id: UUID | str) -> SavedPaymentMethod:
        method = SavedPaymentMethod.objects.filter(user_id=user_id, pk=method_id).first()
        if method is None:
            raise PaymentMethodNotFound(payment_method_id=method_id)
        return method

    def save(self, user_id: str, card: CardMetadata, card_token: str) -> SavedPaymentMethod:
        """
        Save a card the user opted in to keep.

        The same card (brand, last4, expiry) is stored once per user; saving it
        again refreshes the token and holder name.
        """
        with transaction.atomic():
            method, created = SavedPaymentMethod.objects.update_or_create(
                user_id=user_id,
                brand=card.brand,
                last4=card.last4,
                expiry=card.expiry,
                defaults={
                    "holder_name": card.holder_name,
                    "card_token": card_token,
                },
            )
        logger.info(
            f"{'Saved' if created else 'Updated'} payment method {method.id} "
            f"({card.brand} {card.last4}) for user {user_id}"
        )
        return method

    def delete(self, user_id: str, method_id: UUID | str) -> None:
        deleted, _ = SavedPaymentMethod.objects.filter(user_id=user_id, pk=method_id).delete()
        if not deleted:
            raise PaymentMethodNotFound(payment_method_id=method_id)
        logger.info(f"Deleted payment method {method_id} for user {user_id}")

    def card_payment(self, user_id: str, method_id: UUID | str) -> CardPayment:
        """Payment choice for paying with a saved card."""
        method = self.get_for(user_id, method_id)
        return CardPayment(card_token=method.card_token)


@dataclass(frozen=True)
class TopUpReceipt:
    transaction_id: UUID
    charge_id: str
    amount: Decimal
    balance: Decimal


class TopUpService:
    """
    Adds funds to a wallet by charging a card.

    The card is charged first; the wallet is credited only after the charge
    succeeds. If the credit cannot be written the charge cannot be undone here
    and the top-up is escalated for manual reconciliation.
    """

    def __init__(
        self,
        ledger: LedgerStore | None = None,
        gateway: PaymentGateway | None = None,
        payment_methods: PaymentMethodService | None = None,
        max_amount: Decimal | None = None,
    ):
        self.ledger = ledger or LedgerStore()
        self.gateway = gateway or get_payment_gateway()
        self.payment_methods = payment_methods or PaymentMethodService()
        self.max_amount = max_amount if max_amount is not None else settings.WALLET_MAX_TOP_UP

    def top_up(self, user_id: str, amount, payment: CardPayment) -> TopUpReceipt:
        value = normalize_amount(amount)
        if value > self.max_amount:
            raise TopUpLimitExceeded(
                f"Maximum top-up amount is ${self.max_amount:.2f}.",
                amount=value,
            )

        charge_id = self.gateway.charge(user_id, value, payment.card_token, description="Wallet top-up")

        try:
            transaction_id = self.ledger.credit(user_id, value, "Wallet top-up", reference_id=charge_id)
        except DatabaseError as exc:
            require_reconciliation(
                user_id=user_id,
                amount=value,
                payment_method="card",
                payment_reference=charge_id,
                reason="wallet credit failed after card charge",
                cause=exc,
            )

        if payment.save_card:
            self.payment_methods.save(user_id, payment.card, payment.card_token)

        balance = self.ledger.get_balance(user_id)
        logger.info(f"Topped up {value} for user {user_id} (charge {charge_id}), balance {balance}")
        return TopUpReceipt(
            transaction_id=transaction_id,
            charge_id=charge_id,
            amount=value,
            balance=balance,
        )
