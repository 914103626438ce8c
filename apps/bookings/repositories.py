"""
Booking Repository

Maps the Booking aggregate to the bookings table and back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from shared.domain.value_objects import Money, TimeWindow
from apps.bookings.domain.entities import Booking, BookingStatus, PaymentMethod
from apps.bookings.models import Booking as BookingModel

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = (
    "status",
    "payment_reference",
    "cancellation_reason",
    "confirmed_at",
    "completed_at",
    "canceled_at",
    "updated_at",
)


class DjangoBookingRepository:
    """Booking persistence on the Django ORM."""

    def get(self, booking_id: UUID, lock: bool = False) -> Booking | None:
        """
        Load a booking

        With lock=True the row is held (SELECT FOR UPDATE) until the
        surrounding transaction ends.
        """
        queryset = BookingModel.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        row = queryset.filter(pk=booking_id).first()
        return self.to_domain(row) if row else None

    def exists(self, booking_id: UUID) -> bool:
        return BookingModel.objects.filter(pk=booking_id).exists()

    def add(self, booking: Booking) -> None:
        BookingModel.objects.create(**self.to_row(booking))
        logger.debug(f"Inserted {booking!r}")

    def save(self, booking: Booking, expected_status: BookingStatus | None = None) -> bool:
        """
        Persist the booking's lifecycle fields.

        With expected_status the write only lands if the stored status still
        matches; returns False when another writer got there first.
        """
        row = self.to_row(booking)
        queryset = BookingModel.objects.filter(pk=booking.id)
        if expected_status is not None:
            queryset = queryset.filter(status=expected_status.value)

        updated = queryset.update(**{name: row[name] for name in MUTABLE_FIELDS})
        if not updated and expected_status is not None:
            logger.info(f"Booking {booking.id} is no longer {expected_status.value}; write skipped")
        return bool(updated)

    def delete(self, booking_id: UUID) -> None:
        BookingModel.objects.filter(pk=booking_id).delete()

    def due_for_completion(self, now: datetime) -> List[UUID]:
        """Ids of confirmed bookings whose window has ended."""
        return list(
            BookingModel.objects.filter(
                status=BookingModel.Status.CONFIRMED,
                end_time__lte=now,
            ).order_by("end_time").values_list("id", flat=True)
        )

    # ===== Mapping =====

    @staticmethod
    def to_domain(row: BookingModel) -> Booking:
        return Booking(
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            user_id=row.user_id,
            spot_id=row.spot_id,
            window=TimeWindow(row.start_time, row.end_time),
            price=Money(row.price, row.currency),
            payment_method=PaymentMethod(row.payment_method),
            payment_reference=row.payment_reference,
            status=BookingStatus(row.status),
            cancellation_reason=row.cancellation_reason,
            confirmed_at=row.confirmed_at,
            completed_at=row.completed_at,
            canceled_at=row.canceled_at,
        )

    @staticmethod
    def to_row(booking: Booking) -> dict:
        return {
            "id": booking.id,
            "user_id": booking.user_id,
            "spot_id": booking.spot_id,
            "start_time": booking.window.start,
            "end_time": booking.window.end,
            "status": booking.status.value,
            "payment_method": booking.payment_method.value,
            "payment_reference": booking.payment_reference,
            "price": booking.price.amount,
            "currency": booking.price.currency,
            "cancellation_reason": booking.cancellation_reason,
            "confirmed_at": booking.confirmed_at,
            "completed_at": booking.completed_at,
            "canceled_at": booking.canceled_at,
            "created_at": booking.created_at,
            "updated_at": booking.updated_at,
        }
