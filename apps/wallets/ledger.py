"""
Ledger Store

Per-user wallet balances backed by an append-only transaction history.

Every mutation runs in its own database transaction that locks the user's
wallet row (SELECT ... FOR UPDATE), so debits and credits for one user are
serialized while different users proceed in parallel. The materialized
balance and the appended transaction row are written in that same
transaction and only returned to the caller after commit.

The store does not de-duplicate: callers pass a stable reference_id
(the booking id) and are responsible for submitting each operation once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import Sum

from .exceptions import InsufficientFunds, InvalidAmount
from .models import Wallet, WalletTransaction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class ReconciliationReport:
    user_id: str
    balance: Decimal
    replayed_balance: Decimal
    transactions: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.replayed_balance


def normalize_amount(amount) -> Decimal:
    """
    Validate a positive amount with at most cent precision.

    Raises:
        InvalidAmount: for zero, negative, non-numeric or sub-cent amounts
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(amount=amount)

    if not value.is_finite() or value <= 0:
        raise InvalidAmount("Amount must be greater than zero.", amount=amount)
    if value != value.quantize(CENT):
        raise InvalidAmount("Amount cannot have more than two decimal places.", amount=amount)
    return value.quantize(CENT)


class LedgerStore:
    """Django ORM implementation of the ledger store."""

    def __init__(self, currency: str | None = None):
        self.currency = currency or settings.PARKING_CURRENCY

    def _lock_wallet(self, user_id: str) -> Wallet:
        # Must be called inside transaction.atomic(); provisions the wallet on first use
        wallet, created = Wallet.objects.select_for_update().get_or_create(
            user_id=user_id,
            defaults={"currency": self.currency},
        )
        if created:
            logger.info(f"Provisioned wallet for user {user_id}")
        return wallet

    def debit(self, user_id: str, amount, description: str, reference_id: str | UUID | None = None) -> UUID:
        """
        Take money out of the wallet

        Returns: id of the appended transaction

        Raises:
            InvalidAmount: If amount is not a positive cent amount
            InsufficientFunds: If amount exceeds the balance (balance unchanged)
        """
        value = normalize_amount(amount)

        with transaction.atomic():
            wallet = self._lock_wallet(user_id)
            if value > wallet.balance:
                logger.info(
                    f"Debit of {value} refused for user {user_id}: balance {wallet.balance}"
                )
                raise InsufficientFunds(
                    f"You need ${value:.2f} but only have ${wallet.balance:.2f} in your wallet. "
                    f"Please top up your wallet or use a card.",
                    balance=wallet.balance,
                    amount=value,
                )

            wallet.balance -= value
            wallet.save(update_fields=["balance", "updated_at"])
            txn = WalletTransaction.objects.create(
                user_id=user_id,
                amount=-value,
                kind=WalletTransaction.Kind.DEBIT,
                description=description,
                reference_id=str(reference_id or ""),
            )

        logger.info(f"Debited {value} from user {user_id} (txn {txn.id}, ref {reference_id}): {description}")
        return txn.id

    def credit(self, user_id: str, amount, description: str, reference_id: str | UUID | None = None) -> UUID:
        """
        Put money into the wallet

        Returns: id of the appended transaction

        Raises:
            InvalidAmount: If amount is not a positive cent amount
        """
        value = normalize_amount(amount)

        with transaction.atomic():
            wallet = self._lock_wallet(user_id)
            wallet.balance += value
            wallet.save(update_fields=["balance", "updated_at"])
            txn = WalletTransaction.objects.create(
                user_id=user_id,
                amount=value,
                kind=WalletTransaction.Kind.CREDIT,
                description=description,
                reference_id=str(reference_id or ""),
            )

        logger.info(f"Credited {value} to user {user_id} (txn {txn.id}, ref {reference_id}): {description}")
        return txn.id

    def get_balance(self, user_id: str) -> Decimal:
        balance = Wallet.objects.filter(user_id=user_id).values_list("balance", flat=True).first()
        return balance if balance is not None else Decimal("0.00")

    def history(self, user_id: str, limit: int | None = None) -> list[WalletTransaction]:
        """Transactions for the user, newest first."""
        queryset = WalletTransaction.objects.filter(user_id=user_id).order_by("-created_at")
        if limit is not None:
            queryset = queryset[:limit]
        return list(queryset)

    def reconcile(self, user_id: str) -> ReconciliationReport:
        """
        Replay the user's transactions and compare with the materialized balance.

        Takes the wallet lock so that no mutation lands between the two reads.
        """
        with transaction.atomic():
            wallet = Wallet.objects.select_for_update().filter(user_id=user_id).first()
            transactions = WalletTransaction.objects.filter(user_id=user_id)
            replayed = transactions.aggregate(total=Sum("amount"))["total"] or Decimal("0.00")
            count = transactions.count()

        balance = wallet.balance if wallet else Decimal("0.00")
        report = ReconciliationReport(
            user_id=user_id,
            balance=balance,
            replayed_balance=replayed.quantize(CENT),
            transactions=count,
        )
        if not report.consistent:
            logger.error(
                f"Ledger mismatch for user {user_id}: balance {balance}, replayed {report.replayed_balance}"
            )
        return report
