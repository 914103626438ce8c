"""
Wiring for the booking use cases.

Nothing here is a process-wide singleton: every call builds a fresh
engine, and tests pass their own clock, gateway or bus.
"""

from datetime import datetime
from uuid import UUID

from django.conf import settings

from shared.domain.clock import Clock
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    DeleteBookingCommand,
    DeleteBookingHandler,
    SweepExpiredBookingsCommand,
    SweepExpiredBookingsHandler,
    SweepResult,
)
from apps.bookings.availability import AvailabilityIndex
from apps.bookings.domain.entities import Booking
from apps.bookings.repositories import DjangoBookingRepository
from apps.wallets.ledger import LedgerStore
from apps.wallets.payments import PaymentGateway, get_payment_gateway
from apps.wallets.services import PaymentMethodService


class BookingEngine:
    """Entry point for creating, cancelling, deleting and expiring bookings."""

    def __init__(
        self,
        create_handler: CreateBookingHandler,
        cancel_handler: CancelBookingHandler,
        delete_handler: DeleteBookingHandler,
        sweep_handler: SweepExpiredBookingsHandler,
    ):
        self.create_handler = create_handler
        self.cancel_handler = cancel_handler
        self.delete_handler = delete_handler
        self.sweep_handler = sweep_handler

    def create_booking(self, user_id: str, spot_id: UUID, start: datetime, end: datetime, payment,
                       booking_id: UUID | None = None) -> Booking:
        return self.create_handler.handle(CreateBookingCommand(
            user_id=user_id,
            spot_id=spot_id,
            start=start,
            end=end,
            payment=payment,
            booking_id=booking_id,
        ))

    def cancel(self, booking_id: UUID, requested_by: str, reason: str = '') -> Booking:
        return self.cancel_handler.handle(CancelBookingCommand(
            booking_id=booking_id,
            requested_by=requested_by,
            reason=reason,
        ))

    def delete(self, booking_id: UUID, requested_by: str):
        self.delete_handler.handle(DeleteBookingCommand(booking_id=booking_id, requested_by=requested_by))

    def sweep_expired(self, now: datetime | None = None) -> SweepResult:
        return self.sweep_handler.handle(SweepExpiredBookingsCommand(now=now))


def build_booking_engine(
    clock: Clock | None = None,
    gateway: PaymentGateway | None = None,
    ledger: LedgerStore | None = None,
    bus=None,
) -> BookingEngine:
    """Build the engine on the Django-backed stores and the configured payment gateway."""
    clock = clock or Clock()
    booking_repo = DjangoBookingRepository()
    availability = AvailabilityIndex(clock=clock)
    ledger = ledger or LedgerStore()

    return BookingEngine(
        create_handler=CreateBookingHandler(
            booking_repo=booking_repo,
            availability=availability,
            ledger=ledger,
            gateway=gateway or get_payment_gateway(),
            payment_methods=PaymentMethodService(),
            clock=clock,
            hourly_rate=settings.PARKING_HOURLY_RATE,
            currency=settings.PARKING_CURRENCY,
            min_duration_hours=settings.BOOKING_MIN_DURATION_HOURS,
            bus=bus,
        ),
        cancel_handler=CancelBookingHandler(
            booking_repo=booking_repo,
            availability=availability,
            clock=clock,
            notice_hours=settings.BOOKING_CANCELLATION_NOTICE_HOURS,
            bus=bus,
        ),
        delete_handler=DeleteBookingHandler(booking_repo=booking_repo, bus=bus),
        sweep_handler=SweepExpiredBookingsHandler(
            booking_repo=booking_repo,
            availability=availability,
            clock=clock,
            bus=bus,
        ),
    )
