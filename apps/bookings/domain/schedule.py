"""
Spot Schedule Aggregate

The consistency boundary that prevents double bookings. Every window
reserved for a spot goes through this aggregate while the spot is locked.

A schedule holds the windows of the spot's active (pending or confirmed)
bookings. Windows are half-open, so back-to-back bookings do not conflict.

Strategy:
1. Domain validation: allocate() refuses overlaps and repeated booking ids
2. Pessimistic locking: the schedule is loaded with SELECT FOR UPDATE on the spot row
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID

from shared.domain.base import Aggregate
from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.events import SpotReleased, SpotReserved
from apps.bookings.domain.exceptions import InvalidState, SpotUnavailable


@dataclass(frozen=True)
class Allocation:
    """A window held by one active booking."""
    booking_id: UUID
    window: TimeWindow


@dataclass(eq=False, kw_only=True)
class SpotSchedule(Aggregate):
    """
    Spot Schedule Aggregate Root

    Key invariants:
    - No two allocations overlap
    - At most one allocation per booking

    Usage:
        with availability.lock(spot_id) as schedule:
            availability.reserve(schedule, booking_id, window)
    """

    spot_id: UUID
    allocations: List[Allocation] = field(default_factory=list)

    def __post_init__(self):
        # Aggregate id is the spot id; there is one schedule per spot
        self.id = self.spot_id

    def overlapping(self, window: TimeWindow) -> List[Allocation]:
        return [a for a in self.allocations if a.window.overlaps_with(window)]

    def allocate(self, booking_id: UUID, window: TimeWindow) -> Allocation:
        """
        Hold a window for a booking

        Raises:
            InvalidState: If the booking already holds a window on this spot
            SpotUnavailable: If the window overlaps an existing allocation
        """
        if self.get_allocation(booking_id) is not None:
            raise InvalidState(
                "This booking has already been submitted.",
                booking_id=booking_id,
            )

        conflicts = self.overlapping(window)
        if conflicts:
            raise SpotUnavailable(
                spot_id=self.spot_id,
                window=window,
                conflicting_booking=conflicts[0].booking_id,
            )

        allocation = Allocation(booking_id=booking_id, window=window)
        self.allocations.append(allocation)

        self.add_event(SpotReserved(
            aggregate_id=self.id,
            spot_id=self.spot_id,
            booking_id=booking_id,
            window=window,
        ))

        return allocation

    def deallocate(self, booking_id: UUID) -> bool:
        """
        Remove the booking's window from the active set

        Returns False when the booking holds no window (already released),
        so releasing twice is harmless.
        """
        allocation = self.get_allocation(booking_id)
        if allocation is None:
            return False

        self.allocations.remove(allocation)

        self.add_event(SpotReleased(
            aggregate_id=self.id,
            spot_id=self.spot_id,
            booking_id=booking_id,
        ))
        return True

    def get_allocation(self, booking_id: UUID) -> Allocation | None:
        return next((a for a in self.allocations if a.booking_id == booking_id), None)

    def is_free_at(self, instant: datetime) -> bool:
        """True iff no active window contains the instant."""
        return not any(a.window.contains(instant) for a in self.allocations)

    def __str__(self):
        return f"SpotSchedule(spot={self.spot_id}, allocations={len(self.allocations)})"
