"""
External card payment boundary.

Card charges are delegated to an external payment capability; this module
only defines the contract, the payment choices a caller can make, the masked
card metadata that may be persisted, and a simulated gateway for
development and tests. Card numbers and CVVs never leave this module's
callers: the gateway is addressed with the provider's opaque card token.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

from django.conf import settings
from django.utils.module_loading import import_string

from .exceptions import InvalidCardDetails, PaymentDeclined

logger = logging.getLogger(__name__)

EXPIRY_PATTERN = re.compile(r"^(\d{2})/(\d{2})$")


def detect_brand(card_number: str) -> str:
    """Card brand from the leading digit."""
    digits = re.sub(r"\s", "", card_number)
    if digits.startswith("4"):
        return "Visa"
    if digits.startswith("5"):
        return "Mastercard"
    if digits.startswith("3"):
        return "Amex"
    return "Card"


def validate_expiry(expiry: str, today: date | None = None) -> str:
    """Check an MM/YY expiry and that the card has not expired."""
    match = EXPIRY_PATTERN.match(expiry or "")
    if not match:
        raise InvalidCardDetails("Please enter expiry date in MM/YY format.", expiry=expiry)

    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidCardDetails("Please enter a valid month (01-12).", expiry=expiry)

    today = today or date.today()
    if (year, month) < (today.year, today.month):
        raise InvalidCardDetails("The card has expired.", expiry=expiry)
    return expiry


@dataclass(frozen=True)
class CardMetadata:
    """Masked card details that are safe to persist."""
    brand: str
    last4: str
    expiry: str
    holder_name: str

    @classmethod
    def from_card_number(
        cls,
        card_number: str,
        expiry: str,
        holder_name: str,
        today: date | None = None,
    ) -> "CardMetadata":
        """Mask a card number; only brand and last four digits are kept."""
        digits = re.sub(r"\s", "", card_number or "")
        if not digits.isdigit() or len(digits) != 16:
            raise InvalidCardDetails("Please enter a valid 16-digit card number.")
        if not holder_name or not holder_name.strip():
            raise InvalidCardDetails("Please enter the cardholder name.")
        return cls(
            brand=detect_brand(digits),
            last4=digits[-4:],
            expiry=validate_expiry(expiry, today),
            holder_name=holder_name.strip(),
        )


# ===== Payment choices =====

@dataclass(frozen=True)
class WalletPayment:
    """Pay from the user's wallet balance."""

    method = "wallet"


@dataclass(frozen=True)
class CardPayment:
    """
    Pay with a card through the external payment capability.

    card is required when save_card is set, so the masked details can be stored.
    """
    card_token: str
    card: CardMetadata | None = None
    save_card: bool = False

    method = "card"

    def __post_init__(self):
        if not self.card_token:
            raise InvalidCardDetails("A card token is required for card payments.")
        if self.save_card and self.card is None:
            raise InvalidCardDetails("Card details are required to save this card.")


# ===== Gateway =====

class PaymentGateway(ABC):
    """
    External payment capability.

    charge() is synchronous and treated as idempotent per call; retries, if
    any, belong to the provider.
    """

    @abstractmethod
    def charge(self, user_id: str, amount: Decimal, card_token: str, description: str = "") -> str:
        """
        Charge the card.

        Returns: the provider's charge id

        Raises:
            PaymentDeclined: If the provider refuses the charge
        """


class SimulatedCardGateway(PaymentGateway):
    """Approves every charge except those made with a configured decline token."""

    def __init__(self, decline_tokens=None):
        if decline_tokens is None:
            decline_tokens = getattr(settings, "PAYMENT_GATEWAY_DECLINE_TOKENS", [])
        self.decline_tokens = set(decline_tokens)

    def charge(self, user_id: str, amount: Decimal, card_token: str, description: str = "") -> str:
        if card_token in self.decline_tokens:
            logger.info(f"Simulated decline of {amount} for user {user_id}")
            raise PaymentDeclined(user_id=user_id, amount=amount)
        charge_id = f"ch_{uuid4().hex}"
        logger.info(f"Simulated charge {charge_id} of {amount} for user {user_id}: {description}")
        return charge_id


def get_payment_gateway() -> PaymentGateway:
    """Instantiate the gateway configured in settings.PAYMENT_GATEWAY."""
    gateway_class = import_string(settings.PAYMENT_GATEWAY)
    return gateway_class()
