"""Tests for the availability index."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.db import OperationalError

from conftest import at
from shared.domain.value_objects import TimeWindow
from apps.bookings.availability import AvailabilityIndex
from apps.bookings.domain.exceptions import SpotNotFound, SpotUnavailable
from apps.bookings.models import Booking as BookingModel
from apps.spots.models import Spot

pytestmark = pytest.mark.django_db


@pytest.fixture
def index(clock):
    return AvailabilityIndex(clock=clock, retries=2, backoff=0)


def add_booking(spot, start, end, status=BookingModel.Status.CONFIRMED):
    return BookingModel.objects.create(
        user_id="someone",
        spot=spot,
        start_time=start,
        end_time=end,
        status=status,
        payment_method=BookingModel.PaymentMethod.WALLET,
    )


class TestCheckAvailable:
    def test_overlap_blocks_adjacent_does_not(self, index, spot):
        add_booking(spot, at(14), at(15))

        assert not index.check_available(spot.id, TimeWindow(at(14, 30), at(15, 30)))
        assert not index.check_available(spot.id, TimeWindow(at(13), at(16)))
        assert index.check_available(spot.id, TimeWindow(at(15), at(16)))
        assert index.check_available(spot.id, TimeWindow(at(13), at(14)))

    def test_terminal_bookings_do_not_block(self, index, spot):
        add_booking(spot, at(14), at(15), status=BookingModel.Status.CANCELED)
        add_booking(spot, at(14), at(15), status=BookingModel.Status.COMPLETED)

        assert index.check_available(spot.id, TimeWindow(at(14), at(15)))

    def test_pending_bookings_block(self, index, spot):
        add_booking(spot, at(14), at(15), status=BookingModel.Status.PENDING)
        assert not index.check_available(spot.id, TimeWindow(at(14), at(15)))

    def test_unknown_spot(self, index):
        with pytest.raises(SpotNotFound):
            index.check_available(uuid4(), TimeWindow(at(14), at(15)))

    def test_transient_errors_are_retried(self, index, spot, monkeypatch):
        calls = []
        real = index._active_bookings

        def flaky(spot_id):
            calls.append(spot_id)
            if len(calls) < 3:
                raise OperationalError("could not serialize access")
            return real(spot_id)

        monkeypatch.setattr(index, "_active_bookings", flaky)

        assert index.check_available(spot.id, TimeWindow(at(14), at(15)))
        assert len(calls) == 3

    def test_persistent_errors_propagate(self, index, spot, monkeypatch):
        def broken(spot_id):
            raise OperationalError("server closed the connection")

        monkeypatch.setattr(index, "_active_bookings", broken)

        with pytest.raises(OperationalError):
            index.check_available(spot.id, TimeWindow(at(14), at(15)))


class TestIsAvailable:
    def test_free_outside_and_busy_inside_window(self, index, spot):
        add_booking(spot, at(9), at(11))

        assert index.is_available(spot.id, at(8, 59))
        assert not index.is_available(spot.id, at(9))
        assert not index.is_available(spot.id, at(10, 59))
        assert index.is_available(spot.id, at(11))

    def test_defaults_to_clock_time(self, index, spot, clock):
        add_booking(spot, at(8), at(9))
        assert not index.is_available(spot.id)
        clock.set(at(9))
        assert index.is_available(spot.id)


class TestLockedReservation:
    def test_reserve_refuses_overlap(self, index, spot):
        add_booking(spot, at(14), at(15))

        with index.lock(spot.id) as schedule:
            with pytest.raises(SpotUnavailable):
                index.reserve(schedule, uuid4(), TimeWindow(at(14, 30), at(15, 30)))

    def test_reserve_and_release_keep_flag_in_step(self, index, spot):
        booking_id = uuid4()

        with index.lock(spot.id) as schedule:
            index.reserve(schedule, booking_id, TimeWindow(at(8), at(9)))
        spot.refresh_from_db()
        assert spot.is_available is False

        with index.lock(spot.id) as schedule:
            # Schedule loads from bookings; this window was never saved
            schedule.allocate(booking_id, TimeWindow(at(8), at(9)))
            assert index.release(schedule, booking_id)
            assert not index.release(schedule, booking_id)
        spot.refresh_from_db()
        assert spot.is_available is True

    def test_lock_unknown_spot(self, index):
        with pytest.raises(SpotNotFound):
            with index.lock(uuid4()):
                pass


def test_refresh_flags(index, spot, other_spot):
    add_booking(spot, at(8), at(9))
    Spot.objects.filter(pk=other_spot.pk).update(is_available=False)

    changed = index.refresh_flags(at(8, 30))

    assert changed == 2
    assert set(index.busy_spot_ids(at(8, 30))) == {spot.id}
    spot.refresh_from_db()
    other_spot.refresh_from_db()
    assert spot.is_available is False
    assert other_spot.is_available is True
    assert index.refresh_flags(at(8, 30)) == 0
