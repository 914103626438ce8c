"""Tests for the wallet ledger."""

from __future__ import annotations

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from conftest import OTHER_USER, USER
from apps.wallets.exceptions import InsufficientFunds, InvalidAmount
from apps.wallets.models import Wallet, WalletTransaction

pytestmark = pytest.mark.django_db


def test_balance_of_unknown_user_is_zero(ledger):
    assert ledger.get_balance("nobody") == Decimal("0.00")
    assert not Wallet.objects.filter(user_id="nobody").exists()


def test_first_credit_provisions_the_wallet(ledger):
    ledger.credit(USER, "50.00", "Top-up")

    wallet = Wallet.objects.get(user_id=USER)
    assert wallet.balance == Decimal("50.00")
    assert wallet.currency == "NZD"


def test_debit_appends_a_negative_transaction(ledger, funded):
    funded(USER, "50.00")

    txn_id = ledger.debit(USER, Decimal("2.00"), "Parking booking", reference_id="booking-1")

    assert ledger.get_balance(USER) == Decimal("48.00")
    txn = WalletTransaction.objects.get(pk=txn_id)
    assert txn.amount == Decimal("-2.00")
    assert txn.kind == WalletTransaction.Kind.DEBIT
    assert txn.reference_id == "booking-1"


def test_insufficient_funds_leaves_balance_unchanged(ledger, funded):
    funded(USER, "0.50")

    with pytest.raises(InsufficientFunds) as excinfo:
        ledger.debit(USER, Decimal("1.00"), "Parking booking")

    assert "only have $0.50" in excinfo.value.message
    assert ledger.get_balance(USER) == Decimal("0.50")
    assert WalletTransaction.objects.filter(user_id=USER).count() == 1


def test_debit_of_entire_balance_is_allowed(ledger, funded):
    funded(USER, "2.00")
    ledger.debit(USER, "2.00", "Parking booking")
    assert ledger.get_balance(USER) == Decimal("0.00")


@pytest.mark.parametrize("amount", [0, "-1.00", "1.001", "abc", "NaN"])
def test_invalid_amounts_are_rejected(ledger, amount):
    with pytest.raises(InvalidAmount):
        ledger.credit(USER, amount, "Bad")
    with pytest.raises(InvalidAmount):
        ledger.debit(USER, amount, "Bad")
    assert WalletTransaction.objects.count() == 0


def test_balance_equals_sum_of_history(ledger):
    ledger.credit(USER, "20.00", "Top-up")
    ledger.debit(USER, "3.00", "Booking")
    ledger.credit(USER, "3.00", "Refund")
    ledger.debit(USER, "7.25", "Booking")
    ledger.credit(OTHER_USER, "5.00", "Top-up")

    report = ledger.reconcile(USER)

    assert report.consistent
    assert report.balance == Decimal("12.75")
    assert report.transactions == 4


def test_history_is_newest_first(ledger):
    ledger.credit(USER, "10.00", "first")
    ledger.debit(USER, "1.00", "second")

    assert [txn.description for txn in ledger.history(USER)] == ["second", "first"]
    assert len(ledger.history(USER, limit=1)) == 1


def test_transactions_are_append_only(ledger):
    txn_id = ledger.credit(USER, "10.00", "Top-up")
    txn = WalletTransaction.objects.get(pk=txn_id)

    txn.description = "edited"
    with pytest.raises(ValueError):
        txn.save()
    with pytest.raises(ValueError):
        txn.delete()


def test_reconcile_detects_tampered_balance(ledger):
    ledger.credit(USER, "10.00", "Top-up")
    Wallet.objects.filter(user_id=USER).update(balance=Decimal("99.00"))

    report = ledger.reconcile(USER)

    assert not report.consistent
    assert report.replayed_balance == Decimal("10.00")


def test_reconcile_wallets_command(ledger):
    ledger.credit(USER, "10.00", "Top-up")
    ledger.credit(OTHER_USER, "5.00", "Top-up")

    out = StringIO()
    call_command("reconcile_wallets", stdout=out)
    assert "All wallets reconcile" in out.getvalue()

    Wallet.objects.filter(user_id=OTHER_USER).update(balance=Decimal("1.00"))
    with pytest.raises(CommandError):
        call_command("reconcile_wallets", stdout=StringIO())
