"""
Booking window rules and pricing

Pure functions: no database access, "now" is passed in.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from shared.domain.clock import next_whole_hour
from shared.domain.value_objects import Money, TimeWindow, DEFAULT_CURRENCY
from apps.bookings.domain.exceptions import InvalidWindow


def validate_booking_window(
    start: datetime,
    end: datetime,
    now: datetime,
    min_duration_hours: int = 1,
) -> TimeWindow:
    """
    Check a requested window against the booking rules and return it.

    Rules:
    - end must be after start
    - the window must last at least min_duration_hours
    - start must not be earlier than the next whole hour from now

    Raises:
        InvalidWindow: with a message naming the broken rule
    """
    if start.tzinfo is None or end.tzinfo is None:
        raise InvalidWindow("Start and end times must include a timezone.")

    if end <= start:
        raise InvalidWindow("End time must be after start time.", start=start, end=end)

    if end - start < timedelta(hours=min_duration_hours):
        raise InvalidWindow(
            f"Minimum booking duration is {min_duration_hours} hour(s).",
            start=start,
            end=end,
        )

    earliest = next_whole_hour(now)
    if start < earliest:
        raise InvalidWindow(
            f"Please select a start time at or after {earliest.isoformat()}.",
            start=start,
            earliest=earliest,
        )

    return TimeWindow(start, end)


def quote_price(window: TimeWindow, hourly_rate: Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
    """Price of a window: every started hour is charged at the flat hourly rate."""
    return Money(hourly_rate, currency) * window.billable_hours
