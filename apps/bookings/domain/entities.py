"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Aggregate representing a paid reservation of a spot
- BookingStatus: FSM states for booking lifecycle
- PaymentMethod: How the booking was paid
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID, uuid4

from shared.domain.base import Aggregate
from shared.domain.value_objects import Money, TimeWindow
from apps.bookings.domain.events import BookingCanceled, BookingCompleted, BookingConfirmed, BookingDeleted
from apps.bookings.domain.exceptions import CancellationReason, CancellationWindowClosed, InvalidState


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (payment settled, spot held)
    - PENDING -> CANCELED
    - CONFIRMED -> COMPLETED (end time passed, set by the expiry sweep)
    - CONFIRMED -> CANCELED (owner cancelled at least 2 hours ahead)

    COMPLETED and CANCELED are terminal.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELED = 'canceled'

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELED)


class PaymentMethod(Enum):
    WALLET = 'wallet'
    CARD = 'card'


@dataclass(eq=False, kw_only=True)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - window is valid (start < end); the engine enforces the creation rules
    - only PENDING and CONFIRMED bookings hold the spot
    - no transition leaves a terminal state
    """

    user_id: str
    spot_id: UUID
    window: TimeWindow
    price: Money
    payment_method: PaymentMethod
    payment_reference: str = ''

    status: BookingStatus = BookingStatus.PENDING

    cancellation_reason: str = ''
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    canceled_at: datetime | None = None

    @classmethod
    def new(
        cls,
        *,
        user_id: str,
        spot_id: UUID,
        window: TimeWindow,
        price: Money,
        payment_method: PaymentMethod,
        booking_id: UUID | None = None,
        now: datetime | None = None,
    ) -> 'Booking':
        booking = cls(
            id=booking_id or uuid4(),
            user_id=user_id,
            spot_id=spot_id,
            window=window,
            price=price,
            payment_method=payment_method,
        )
        if now is not None:
            booking.created_at = booking.updated_at = now
        return booking

    def confirm(self, payment_reference: str, now: datetime):
        """
        Confirm payment (PENDING -> CONFIRMED)

        Events: BookingConfirmed
        """
        if self.status != BookingStatus.PENDING:
            raise InvalidState(
                f"Cannot confirm booking from status {self.status.value}.",
                booking_id=self.id,
            )

        self.status = BookingStatus.CONFIRMED
        self.payment_reference = payment_reference
        self.confirmed_at = now
        self.updated_at = now

        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            spot_id=self.spot_id,
            user_id=self.user_id,
            window=self.window,
            price=self.price,
            payment_method=self.payment_method.value,
        ))

    def complete(self, now: datetime):
        """
        Complete booking (CONFIRMED -> COMPLETED)

        Only once the window has ended.
        Events: BookingCompleted
        """
        if self.status != BookingStatus.CONFIRMED:
            raise InvalidState(
                f"Cannot complete booking from status {self.status.value}.",
                booking_id=self.id,
            )
        if now < self.window.end:
            raise InvalidState(
                f"Booking ends at {self.window.end.isoformat()} and cannot be completed yet.",
                booking_id=self.id,
            )

        self.status = BookingStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now

        self.add_event(BookingCompleted(
            aggregate_id=self.id,
            booking_id=self.id,
            spot_id=self.spot_id,
            user_id=self.user_id,
        ))

    def cancel(self, now: datetime, notice_hours: int = 2, reason: str = ''):
        """
        Cancel booking (CONFIRMED -> CANCELED)

        Allowed only while at least notice_hours remain before the start.
        The wallet is not refunded.
        Events: BookingCanceled
        """
        if self.status != BookingStatus.CONFIRMED:
            raise InvalidState(
                f"Cannot cancel booking with status {self.status.value}.",
                booking_id=self.id,
            )

        if now >= self.window.start:
            raise CancellationWindowClosed(
                CancellationReason.ALREADY_STARTED, notice_hours, booking_id=self.id,
            )
        if self.window.start - now < timedelta(hours=notice_hours):
            raise CancellationWindowClosed(
                CancellationReason.TOO_LATE, notice_hours, booking_id=self.id,
            )

        old_status = self.status
        self.status = BookingStatus.CANCELED
        self.cancellation_reason = reason
        self.canceled_at = now
        self.updated_at = now

        self.add_event(BookingCanceled(
            aggregate_id=self.id,
            booking_id=self.id,
            spot_id=self.spot_id,
            user_id=self.user_id,
            reason=reason,
            old_status=old_status.value,
        ))

    def mark_deleted(self):
        """
        Only finished or cancelled bookings may be deleted.
        Events: BookingDeleted
        """
        if not self.status.is_terminal:
            raise InvalidState(
                f"Only cancelled or completed bookings can be deleted (status: {self.status.value}).",
                booking_id=self.id,
            )

        self.add_event(BookingDeleted(
            aggregate_id=self.id,
            booking_id=self.id,
            user_id=self.user_id,
            status=self.status.value,
        ))

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, spot_id={self.spot_id}, "
            f"status={self.status.value}, window={self.window})"
        )
