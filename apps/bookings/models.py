"""Booking persistence models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore


class Booking(models.Model):
    """Reservation of a parking spot for a half-open [start_time, end_time) window."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        COMPLETED = "completed", "Completed"
        CANCELED = "canceled", "Canceled"

    class PaymentMethod(models.TextChoices):
        WALLET = "wallet", "Wallet"
        CARD = "card", "Card"

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)
    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=128, help_text="Opaque user id from the external auth provider.")
    spot = models.ForeignKey(
        "spots.Spot",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    payment_reference = models.CharField(
        max_length=100,
        blank=True,
        help_text="Wallet transaction id or external charge id.",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="NZD")
    cancellation_reason = models.CharField(max_length=255, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["spot", "status", "start_time", "end_time"], name="booking_spot_window_idx"),
            models.Index(fields=["user_id", "created_at"], name="booking_user_idx"),
            models.Index(fields=["status", "end_time"], name="booking_status_end_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} for spot {self.spot_id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES
