"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money, TimeWindow


# ===== Booking Events =====

@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """
    Event: Booking paid and confirmed (PENDING -> CONFIRMED)

    The spot is held for the window from this point on.
    """
    booking_id: UUID
    spot_id: UUID
    user_id: str
    window: TimeWindow
    price: Money
    payment_method: str


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """
    Event: Booking window has ended (CONFIRMED -> COMPLETED)
    """
    booking_id: UUID
    spot_id: UUID
    user_id: str


@dataclass(kw_only=True)
class BookingCanceled(DomainEvent):
    """
    Event: Booking was cancelled by its owner

    No wallet refund is issued on cancellation.
    """
    booking_id: UUID
    spot_id: UUID
    user_id: str
    reason: str
    old_status: str


@dataclass(kw_only=True)
class BookingDeleted(DomainEvent):
    """Event: A finished or cancelled booking record was removed"""
    booking_id: UUID
    user_id: str
    status: str


# ===== Availability Events =====

@dataclass(kw_only=True)
class SpotReserved(DomainEvent):
    """
    Event: A window was added to the spot's active set
    """
    spot_id: UUID
    booking_id: UUID
    window: TimeWindow


@dataclass(kw_only=True)
class SpotReleased(DomainEvent):
    """
    Event: A window was removed from the spot's active set
    """
    spot_id: UUID
    booking_id: UUID
