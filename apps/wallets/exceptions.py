"""Wallet and payment errors."""

from shared.domain.exceptions import DomainError


class InvalidAmount(DomainError):
    code = 'invalid_amount'
    default_message = 'Please enter a valid amount.'


class InsufficientFunds(DomainError):
    code = 'insufficient_funds'
    default_message = 'Insufficient wallet balance. Please top up your wallet or pay by card.'
    http_status = 402


class PaymentDeclined(DomainError):
    code = 'payment_declined'
    default_message = 'Your card was declined. Please try another card.'
    http_status = 402


class TopUpLimitExceeded(DomainError):
    code = 'top_up_limit_exceeded'
    default_message = 'This top-up exceeds the maximum allowed amount.'


class InvalidCardDetails(DomainError):
    code = 'invalid_card_details'
    default_message = 'Please check the card details.'


class PaymentMethodNotFound(DomainError):
    code = 'payment_method_not_found'
    default_message = 'Payment method not found.'
    http_status = 404
