"""
Booking Domain Errors

One class per failure kind the booking engine and the cancellation/expiry
supervisor report. Callers adjust their input or choose another window/spot;
none of these are retried automatically.
"""

from enum import Enum

from shared.domain.exceptions import DomainError


class InvalidWindow(DomainError):
    code = 'invalid_window'
    default_message = 'The requested parking time is not valid.'


class SpotNotFound(DomainError):
    code = 'spot_not_found'
    default_message = 'This parking spot does not exist.'
    http_status = 404


class SpotUnavailable(DomainError):
    code = 'spot_unavailable'
    default_message = 'This spot was just taken for the selected time. Please pick another time or spot.'
    http_status = 409


class BookingNotFound(DomainError):
    code = 'booking_not_found'
    default_message = 'Booking not found.'
    http_status = 404


class InvalidState(DomainError):
    code = 'invalid_state'
    default_message = 'This booking cannot be changed in its current state.'
    http_status = 409


class CancellationReason(Enum):
    ALREADY_STARTED = 'already_started'
    TOO_LATE = 'too_late'


class CancellationWindowClosed(DomainError):
    code = 'cancellation_window_closed'
    http_status = 409

    MESSAGES = {
        CancellationReason.ALREADY_STARTED: 'This parking session has already started and cannot be cancelled.',
        CancellationReason.TOO_LATE: 'Bookings must be cancelled at least {notice} hours before the parking start time.',
    }

    def __init__(self, reason: CancellationReason, notice_hours: int = 2, **context):
        self.reason = reason
        message = self.MESSAGES[reason].format(notice=notice_hours)
        super().__init__(message, **context)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload['reason'] = self.reason.value
        return payload


class PaymentFailed(DomainError):
    """
    The payment step of a booking failed; nothing was booked.

    Wraps the ledger or gateway error so callers can tell an empty wallet
    from a declined card.
    """
    code = 'payment_failed'
    http_status = 402

    def __init__(self, cause: DomainError, **context):
        self.cause = cause
        super().__init__(cause.message, **context)

    @property
    def reason(self) -> str:
        return self.cause.code

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload['reason'] = self.reason
        return payload
