"""Wallet and payment method models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore

from shared.infrastructure.fields import EncryptedTextField


class Wallet(models.Model):
    """Materialized wallet balance, kept in step with the user's transactions."""

    user_id = models.CharField(max_length=128, unique=True)
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="NZD")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Wallet"
        verbose_name_plural = "Wallets"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="wallet_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Wallet {self.user_id}: {self.balance} {self.currency}"


class WalletTransaction(models.Model):
    """Append-only ledger row. Credits are positive, debits negative."""

    class Kind(models.TextChoices):
        CREDIT = "credit", "Credit"
        DEBIT = "debit", "Debit"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=128)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    kind = models.CharField(max_length=8, choices=Kind.choices)
    description = models.CharField(max_length=255)
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        help_text="Booking id or external charge id.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Wallet transaction"
        verbose_name_plural = "Wallet transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "created_at"], name="wallet_txn_user_idx"),
            models.Index(fields=["reference_id"], name="wallet_txn_reference_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(kind="credit", amount__gt=0) | models.Q(kind="debit", amount__lt=0)
                ),
                name="wallet_txn_sign_matches_kind",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount} for {self.user_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValueError("Wallet transactions are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ValueError("Wallet transactions are append-only")


class SavedPaymentMethod(models.Model):
    """
    Card saved on explicit opt-in.

    Only masked metadata and the provider's opaque token are stored; never the
    card number or CVV.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=128)
    brand = models.CharField(max_length=20)
    last4 = models.CharField(max_length=4)
    expiry = models.CharField(max_length=5, help_text="MM/YY")
    holder_name = models.CharField(max_length=100)
    card_token = EncryptedTextField(help_text="Opaque token issued by the payment provider.")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Saved payment method"
        verbose_name_plural = "Saved payment methods"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id"], name="payment_method_user_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.brand} •••• {self.last4}"
