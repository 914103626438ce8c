"""
Domain event handlers for bookings.

Run after the producing transaction commits. They only record what
happened; every state change has already been made by the command handlers.
"""

import logging

from shared.application.alerts import PaymentReconciliationRequired
from shared.application.message_bus import message_bus
from apps.bookings.domain.events import (
    BookingCanceled,
    BookingCompleted,
    BookingConfirmed,
    BookingDeleted,
    SpotReleased,
    SpotReserved,
)

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("bookings.audit")


@message_bus.subscribe(BookingConfirmed)
def log_booking_confirmed(event: BookingConfirmed):
    audit_logger.info(
        f"Booking {event.booking_id} confirmed for user {event.user_id}: spot {event.spot_id}, "
        f"{event.window}, {event.price} paid by {event.payment_method}"
    )


@message_bus.subscribe(BookingCanceled)
def log_booking_canceled(event: BookingCanceled):
    audit_logger.info(
        f"Booking {event.booking_id} canceled by user {event.user_id} "
        f"(was {event.old_status}); reason: {event.reason or 'none given'}"
    )


@message_bus.subscribe(BookingCompleted)
def log_booking_completed(event: BookingCompleted):
    audit_logger.info(f"Booking {event.booking_id} completed on spot {event.spot_id}")


@message_bus.subscribe(BookingDeleted)
def log_booking_deleted(event: BookingDeleted):
    audit_logger.info(f"Booking {event.booking_id} ({event.status}) deleted by user {event.user_id}")


@message_bus.subscribe(SpotReserved, SpotReleased)
def log_spot_schedule_change(event):
    action = "reserved" if isinstance(event, SpotReserved) else "released"
    logger.debug(f"Spot {event.spot_id} {action} for booking {event.booking_id}")


@message_bus.subscribe(PaymentReconciliationRequired)
def log_reconciliation_event(event: PaymentReconciliationRequired):
    audit_logger.error(
        f"Reconciliation pending for user {event.user_id}: {event.amount} via {event.payment_method} "
        f"({event.payment_reference}), booking {event.booking_id}: {event.reason}"
    )
