"""
Availability Index

Answers "is this spot free for this window" from the bookings table and
keeps the cached Spot.is_available flag in step with it.

Reads are lock-free and retried a bounded number of times on transient
database errors. Writes go through a SpotSchedule loaded under the spot's
row lock, so check-then-reserve is atomic per spot while unrelated spots
never contend.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import UUID

from django.conf import settings
from django.db import OperationalError, transaction

from shared.domain.clock import Clock
from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.exceptions import SpotNotFound
from apps.bookings.domain.schedule import Allocation, SpotSchedule
from apps.bookings.models import Booking as BookingModel
from apps.spots.models import Spot

logger = logging.getLogger(__name__)


class AvailabilityIndex:
    """Django ORM implementation of the availability index."""

    def __init__(self, clock: Clock | None = None, retries: int | None = None, backoff: float | None = None):
        self.clock = clock or Clock()
        self.retries = retries if retries is not None else settings.AVAILABILITY_CHECK_RETRIES
        self.backoff = backoff if backoff is not None else settings.AVAILABILITY_CHECK_BACKOFF_SECONDS

    # ===== Reads =====

    def check_available(self, spot_id: UUID, window: TimeWindow) -> bool:
        """
        True iff no pending or confirmed booking of the spot overlaps the window.

        Raises:
            SpotNotFound: If the spot does not exist
            OperationalError: If the store keeps failing after the retries
        """
        def query():
            if not Spot.objects.filter(pk=spot_id).exists():
                raise SpotNotFound(spot_id=spot_id)
            return not self._active_bookings(spot_id).filter(
                start_time__lt=window.end,
                end_time__gt=window.start,
            ).exists()

        return self._with_retry(query, f"availability check for spot {spot_id}")

    def is_available(self, spot_id: UUID, at: datetime | None = None) -> bool:
        """True iff no active booking window contains the instant (default: now)."""
        instant = at or self.clock.now()
        return not self._active_bookings(spot_id).filter(
            start_time__lte=instant,
            end_time__gt=instant,
        ).exists()

    def busy_spot_ids(self, at: datetime | None = None) -> set[UUID]:
        instant = at or self.clock.now()
        return set(
            BookingModel.objects.filter(
                status__in=BookingModel.ACTIVE_STATUSES,
                start_time__lte=instant,
                end_time__gt=instant,
            ).values_list("spot_id", flat=True)
        )

    # ===== Locked writes =====

    @contextmanager
    def lock(self, spot_id: UUID) -> Iterator[SpotSchedule]:
        """
        Hold the spot's row lock and yield its schedule of active windows.

        Joins the caller's transaction when there is one; the lock is held
        until that outermost transaction ends.

        Raises:
            SpotNotFound: If the spot does not exist
        """
        with transaction.atomic():
            if not Spot.objects.select_for_update().filter(pk=spot_id).exists():
                raise SpotNotFound(spot_id=spot_id)

            allocations = [
                Allocation(booking_id=row.id, window=TimeWindow(row.start_time, row.end_time))
                for row in self._active_bookings(spot_id).only("id", "start_time", "end_time")
            ]
            schedule = SpotSchedule(spot_id=spot_id, allocations=allocations)
            logger.debug(f"Locked {schedule}")
            yield schedule

    def reserve(self, schedule: SpotSchedule, booking_id: UUID, window: TimeWindow, now: datetime | None = None):
        """
        Hold the window for the booking; call inside lock().

        Raises:
            SpotUnavailable: If the window overlaps an active booking
        """
        allocation = schedule.allocate(booking_id, window)
        self._store_flag(schedule, now)
        logger.info(f"Reserved {window} on spot {schedule.spot_id} for booking {booking_id}")
        return allocation

    def release(self, schedule: SpotSchedule, booking_id: UUID, now: datetime | None = None) -> bool:
        """Drop the booking's window; call inside lock(). Releasing twice is a no-op."""
        released = schedule.deallocate(booking_id)
        if released:
            self._store_flag(schedule, now)
            logger.info(f"Released booking {booking_id} on spot {schedule.spot_id}")
        return released

    def refresh_flags(self, now: datetime | None = None) -> int:
        """
        Recompute the cached flag of every spot from the bookings table.

        Returns: number of spots whose flag changed
        """
        instant = now or self.clock.now()
        busy = self.busy_spot_ids(instant)

        with transaction.atomic():
            became_busy = Spot.objects.filter(pk__in=busy, is_available=True).update(
                is_available=False, availability_checked_at=instant,
            )
            became_free = Spot.objects.exclude(pk__in=busy).filter(is_available=False).update(
                is_available=True, availability_checked_at=instant,
            )

        if became_busy or became_free:
            logger.info(f"Availability refreshed: {became_busy} spot(s) now busy, {became_free} now free")
        return became_busy + became_free

    # ===== Helpers =====

    def _active_bookings(self, spot_id: UUID):
        return BookingModel.objects.filter(spot_id=spot_id, status__in=BookingModel.ACTIVE_STATUSES)

    def _store_flag(self, schedule: SpotSchedule, now: datetime | None):
        instant = now or self.clock.now()
        Spot.objects.filter(pk=schedule.spot_id).update(
            is_available=schedule.is_free_at(instant),
            availability_checked_at=instant,
        )

    def _with_retry(self, query, label: str):
        attempt = 0
        while True:
            try:
                return query()
            except OperationalError as exc:
                attempt += 1
                if attempt > self.retries:
                    logger.error(f"Giving up on {label} after {attempt} attempts: {exc}")
                    raise
                logger.warning(f"Transient error on {label} (attempt {attempt}/{self.retries}): {exc}")
                time.sleep(self.backoff * attempt)
