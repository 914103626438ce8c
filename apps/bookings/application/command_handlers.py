"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Validate, pay and reserve a spot (the booking engine)
- CancelBookingCommand: Owner cancels a confirmed booking
- DeleteBookingCommand: Owner removes a finished or cancelled booking
- SweepExpiredBookingsCommand: Complete every booking whose window has ended

Lock order, wherever both are taken: booking row, then spot row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID
import logging

from django.db import DatabaseError

from shared.application.alerts import require_reconciliation
from shared.application.uow import DjangoUnitOfWork
from shared.domain.clock import Clock
from apps.bookings.availability import AvailabilityIndex
from apps.bookings.domain.entities import Booking, BookingStatus, PaymentMethod
from apps.bookings.domain.exceptions import BookingNotFound, InvalidState, PaymentFailed, SpotNotFound, SpotUnavailable
from apps.bookings.domain.pricing import quote_price, validate_booking_window
from apps.bookings.repositories import DjangoBookingRepository
from apps.wallets.exceptions import InsufficientFunds, InvalidAmount, PaymentDeclined
from apps.wallets.ledger import LedgerStore
from apps.wallets.payments import CardPayment, PaymentGateway, WalletPayment
from apps.wallets.services import PaymentMethodService

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    booking_id may be supplied by the client so that a resubmitted request
    is recognised instead of paid twice.
    """
    user_id: str
    spot_id: UUID
    start: datetime
    end: datetime
    payment: WalletPayment | CardPayment
    booking_id: UUID | None = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: UUID
    requested_by: str
    reason: str = ''


@dataclass
class DeleteBookingCommand:
    booking_id: UUID
    requested_by: str


@dataclass
class SweepExpiredBookingsCommand:
    """Complete confirmed bookings that ended at or before now (default: clock time)"""
    now: datetime | None = None


@dataclass
class SweepResult:
    completed: List[UUID] = field(default_factory=list)
    skipped: int = 0
    flags_changed: int = 0


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command (the booking engine)

    Strategy:
    1. Validate the window and price it (pure)
    2. Read-only availability pre-check; nothing is paid for a taken spot
    3. Take payment: wallet debit or external card charge, never retried
    4. Start Unit of Work, lock the spot row and load its schedule
    5. Re-check and reserve in the schedule, save the booking as confirmed
    6. Commit; events are published after commit
    7. Race lost or storage failure after payment: refund the wallet,
       or escalate a card charge for reconciliation
    """

    def __init__(
        self,
        booking_repo: DjangoBookingRepository,
        availability: AvailabilityIndex,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        payment_methods: PaymentMethodService,
        clock: Clock,
        hourly_rate: Decimal,
        currency: str,
        min_duration_hours: int = 1,
        bus=None,
    ):
        self.booking_repo = booking_repo
        self.availability = availability
        self.ledger = ledger
        self.gateway = gateway
        self.payment_methods = payment_methods
        self.clock = clock
        self.hourly_rate = hourly_rate
        self.currency = currency
        self.min_duration_hours = min_duration_hours
        self.bus = bus

    def handle(self, command: CreateBookingCommand) -> Booking:
        """
        Handle booking creation

        Returns: the confirmed Booking aggregate

        Raises:
            InvalidWindow: If the window breaks the booking rules
            SpotNotFound: If the spot does not exist
            SpotUnavailable: If the window overlaps an active booking
            PaymentFailed: If the wallet or card payment was refused
            InvalidState: If a booking with the supplied id already exists
            ReconciliationRequired: If a card was charged for a booking that could not be saved

        Any error after payment refunds the wallet (or escalates the card
        charge) before it propagates.
        """
        now = self.clock.now()
        logger.info(
            f"Creating booking for spot {command.spot_id}, user {command.user_id}, "
            f"{command.start.isoformat()} - {command.end.isoformat()}"
        )

        window = validate_booking_window(command.start, command.end, now, self.min_duration_hours)

        if command.booking_id is not None and self.booking_repo.exists(command.booking_id):
            raise InvalidState(
                "This booking has already been submitted.",
                booking_id=command.booking_id,
            )

        if not self.availability.check_available(command.spot_id, window):
            raise SpotUnavailable(spot_id=command.spot_id, window=window)

        booking = Booking.new(
            user_id=command.user_id,
            spot_id=command.spot_id,
            window=window,
            price=quote_price(window, self.hourly_rate, self.currency),
            payment_method=PaymentMethod(command.payment.method),
            booking_id=command.booking_id,
            now=now,
        )

        payment_reference = self._take_payment(booking, command.payment)

        try:
            with DjangoUnitOfWork(bus=self.bus) as uow:
                with self.availability.lock(booking.spot_id) as schedule:
                    self.availability.reserve(schedule, booking.id, booking.window, now)
                    booking.confirm(payment_reference, now)
                    self.booking_repo.add(booking)

                    if isinstance(command.payment, CardPayment) and command.payment.save_card:
                        self.payment_methods.save(
                            booking.user_id, command.payment.card, command.payment.card_token,
                        )

                    uow.collect_events(schedule)
                    uow.collect_events(booking)
        except (SpotUnavailable, SpotNotFound) as exc:
            logger.info(f"Spot {booking.spot_id} could not be reserved while booking {booking.id} was being paid")
            self._compensate(booking, payment_reference, "spot taken after payment", exc)
            raise
        except Exception as exc:
            logger.error(f"Could not save booking {booking.id} after payment: {exc!r}")
            self._compensate(booking, payment_reference, "booking could not be saved after payment", exc)
            raise

        logger.info(
            f"Booking {booking.id} confirmed: spot {booking.spot_id}, {booking.window}, "
            f"{booking.price} via {booking.payment_method.value}"
        )
        return booking

    def _take_payment(self, booking: Booking, payment) -> str:
        """Returns the wallet transaction id or the card charge id."""
        amount = booking.price.amount

        if isinstance(payment, CardPayment):
            try:
                return self.gateway.charge(
                    booking.user_id, amount, payment.card_token,
                    description=f"Parking booking {booking.id}",
                )
            except PaymentDeclined as exc:
                logger.info(f"Card declined for booking {booking.id}")
                raise PaymentFailed(exc, booking_id=booking.id) from exc

        try:
            txn_id = self.ledger.debit(
                booking.user_id, amount, f"Parking booking {booking.id}", reference_id=booking.id,
            )
        except (InsufficientFunds, InvalidAmount) as exc:
            logger.info(f"Wallet payment refused for booking {booking.id}: {exc.code}")
            raise PaymentFailed(exc, booking_id=booking.id) from exc
        return str(txn_id)

    def _compensate(self, booking: Booking, payment_reference: str, reason: str, cause: BaseException):
        """
        Undo a payment whose booking was not committed.

        Wallet payments are refunded in full. A card charge cannot be
        reversed here, so it raises ReconciliationRequired.
        """
        if booking.payment_method == PaymentMethod.CARD:
            require_reconciliation(
                user_id=booking.user_id,
                amount=booking.price.amount,
                payment_method=booking.payment_method.value,
                payment_reference=payment_reference,
                reason=reason,
                booking_id=booking.id,
                cause=cause,
                bus=self.bus,
            )

        try:
            self.ledger.credit(
                booking.user_id,
                booking.price.amount,
                f"Refund for parking booking {booking.id}",
                reference_id=booking.id,
            )
        except DatabaseError as exc:
            require_reconciliation(
                user_id=booking.user_id,
                amount=booking.price.amount,
                payment_method=booking.payment_method.value,
                payment_reference=payment_reference,
                reason=f"{reason}; wallet refund failed",
                booking_id=booking.id,
                cause=exc,
                bus=self.bus,
            )
        logger.info(f"Refunded {booking.price} to user {booking.user_id} for booking {booking.id}")


class CancelBookingHandler:
    """Handler for cancelling booking; the wallet is not refunded"""

    def __init__(self, booking_repo, availability: AvailabilityIndex, clock: Clock, notice_hours: int = 2, bus=None):
        self.booking_repo = booking_repo
        self.availability = availability
        self.clock = clock
        self.notice_hours = notice_hours
        self.bus = bus

    def handle(self, command: CancelBookingCommand) -> Booking:
        """
        Cancel booking and release its window

        Raises:
            BookingNotFound: If there is no such booking owned by the requester
            InvalidState: If the booking is not confirmed
            CancellationWindowClosed: If the booking started or starts within the notice period
        """
        logger.info(f"Cancelling booking {command.booking_id} for user {command.requested_by}")
        now = self.clock.now()

        with DjangoUnitOfWork(bus=self.bus) as uow:
            booking = self.booking_repo.get(command.booking_id, lock=True)
            if booking is None or booking.user_id != command.requested_by:
                raise BookingNotFound(booking_id=command.booking_id)

            booking.cancel(now, self.notice_hours, command.reason)

            with self.availability.lock(booking.spot_id) as schedule:
                self.booking_repo.save(booking, expected_status=BookingStatus.CONFIRMED)
                self.availability.release(schedule, booking.id, now)
                uow.collect_events(schedule)

            uow.collect_events(booking)

        logger.info(f"Booking {booking.id} cancelled")
        return booking


class DeleteBookingHandler:
    """Handler for deleting a finished or cancelled booking"""

    def __init__(self, booking_repo, bus=None):
        self.booking_repo = booking_repo
        self.bus = bus

    def handle(self, command: DeleteBookingCommand):
        with DjangoUnitOfWork(bus=self.bus) as uow:
            booking = self.booking_repo.get(command.booking_id, lock=True)
            if booking is None or booking.user_id != command.requested_by:
                raise BookingNotFound(booking_id=command.booking_id)

            booking.mark_deleted()
            self.booking_repo.delete(booking.id)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.id} deleted by user {command.requested_by}")


class SweepExpiredBookingsHandler:
    """
    Handler for the periodic expiry sweep

    Each booking is completed in its own transaction with a conditional
    "only if still confirmed" write, so overlapping or repeated sweeps
    complete and release every booking exactly once.
    """

    def __init__(self, booking_repo, availability: AvailabilityIndex, clock: Clock, bus=None):
        self.booking_repo = booking_repo
        self.availability = availability
        self.clock = clock
        self.bus = bus

    def handle(self, command: SweepExpiredBookingsCommand) -> SweepResult:
        now = command.now or self.clock.now()
        result = SweepResult()

        for booking_id in self.booking_repo.due_for_completion(now):
            if self._complete(booking_id, now):
                result.completed.append(booking_id)
            else:
                result.skipped += 1

        result.flags_changed = self.availability.refresh_flags(now)

        if result.completed or result.skipped:
            logger.info(
                f"Expiry sweep at {now.isoformat()}: completed {len(result.completed)}, "
                f"skipped {result.skipped}"
            )
        return result

    def _complete(self, booking_id: UUID, now: datetime) -> bool:
        with DjangoUnitOfWork(bus=self.bus) as uow:
            booking = self.booking_repo.get(booking_id, lock=True)
            if booking is None or booking.status != BookingStatus.CONFIRMED:
                return False

            booking.complete(now)

            with self.availability.lock(booking.spot_id) as schedule:
                if not self.booking_repo.save(booking, expected_status=BookingStatus.CONFIRMED):
                    return False
                self.availability.release(schedule, booking.id, now)
                uow.collect_events(schedule)

            uow.collect_events(booking)
        return True
