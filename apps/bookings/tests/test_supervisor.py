"""Tests for cancellation, deletion and the expiry sweep."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import OTHER_USER, USER, at
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.exceptions import (
    BookingNotFound,
    CancellationReason,
    CancellationWindowClosed,
    InvalidState,
)
from apps.bookings.models import Booking as BookingModel
from apps.bookings.repositories import DjangoBookingRepository
from apps.bookings.tasks import sweep_expired_bookings
from apps.wallets.payments import WalletPayment

pytestmark = pytest.mark.django_db


@pytest.fixture
def booked(engine, spot, funded):
    """A confirmed 10:00-12:00 booking made at 08:00."""
    funded(USER, "50.00")
    return engine.create_booking(USER, spot.id, at(10), at(12), WalletPayment())


class TestCancel:
    def test_cancel_with_enough_notice(self, engine, booked, clock, ledger):
        clock.set(at(7, 59))

        booking = engine.cancel(booked.id, USER, reason="Plans changed")

        assert booking.status == BookingStatus.CANCELED
        row = BookingModel.objects.get(pk=booked.id)
        assert row.status == BookingModel.Status.CANCELED
        assert row.cancellation_reason == "Plans changed"
        assert row.canceled_at == at(7, 59)
        # No refund on cancellation
        assert ledger.get_balance(USER) == Decimal("48.00")

    def test_cancel_too_late(self, engine, booked, clock):
        clock.set(at(8, 30))

        with pytest.raises(CancellationWindowClosed) as excinfo:
            engine.cancel(booked.id, USER)

        assert excinfo.value.reason == CancellationReason.TOO_LATE
        assert BookingModel.objects.get(pk=booked.id).status == BookingModel.Status.CONFIRMED

    def test_cancel_after_start(self, engine, booked, clock):
        clock.set(at(10, 15))

        with pytest.raises(CancellationWindowClosed) as excinfo:
            engine.cancel(booked.id, USER)

        assert excinfo.value.reason == CancellationReason.ALREADY_STARTED

    def test_other_users_cannot_see_the_booking(self, engine, booked):
        with pytest.raises(BookingNotFound):
            engine.cancel(booked.id, OTHER_USER)

    def test_unknown_booking(self, engine, db):
        with pytest.raises(BookingNotFound):
            engine.cancel(uuid4(), USER)

    def test_cancelled_window_can_be_booked_again(self, engine, booked, funded):
        engine.cancel(booked.id, USER)
        funded(OTHER_USER, "10.00")

        booking = engine.create_booking(OTHER_USER, booked.spot_id, at(10), at(12), WalletPayment())
        assert booking.status == BookingStatus.CONFIRMED

    def test_cancel_twice_is_invalid(self, engine, booked):
        engine.cancel(booked.id, USER)
        with pytest.raises(InvalidState):
            engine.cancel(booked.id, USER)

    def test_booking_in_use_cannot_be_cancelled(self, engine, spot, funded, clock):
        funded(USER, "50.00")
        booking = engine.create_booking(USER, spot.id, at(11), at(12), WalletPayment())
        clock.set(at(11, 30))
        engine.sweep_expired()
        spot.refresh_from_db()
        assert spot.is_available is False

        with pytest.raises(CancellationWindowClosed):
            engine.cancel(booking.id, USER)


class TestDelete:
    def test_active_booking_cannot_be_deleted(self, engine, booked):
        with pytest.raises(InvalidState):
            engine.delete(booked.id, USER)
        assert BookingModel.objects.filter(pk=booked.id).exists()

    def test_cancelled_booking_can_be_deleted_by_owner(self, engine, booked):
        engine.cancel(booked.id, USER)

        with pytest.raises(BookingNotFound):
            engine.delete(booked.id, OTHER_USER)

        engine.delete(booked.id, USER)
        assert not BookingModel.objects.filter(pk=booked.id).exists()

    def test_completed_booking_can_be_deleted(self, engine, booked):
        engine.sweep_expired(now=at(12))
        engine.delete(booked.id, USER)
        assert not BookingModel.objects.exists()


class TestSweep:
    def test_sweep_completes_ended_booking_once(self, engine, spot, funded, clock):
        funded(USER, "50.00")
        booking = engine.create_booking(USER, spot.id, at(9), at(11), WalletPayment())

        first = engine.sweep_expired(now=at(11, 5))
        second = engine.sweep_expired(now=at(11, 5))

        assert first.completed == [booking.id]
        assert second.completed == []
        row = BookingModel.objects.get(pk=booking.id)
        assert row.status == BookingModel.Status.COMPLETED
        assert row.completed_at == at(11, 5)

    def test_sweep_leaves_running_bookings_alone(self, engine, booked):
        result = engine.sweep_expired(now=at(11, 59))

        assert result.completed == []
        assert BookingModel.objects.get(pk=booked.id).status == BookingModel.Status.CONFIRMED

    def test_sweep_refreshes_availability_flags(self, engine, spot, booked):
        engine.sweep_expired(now=at(10, 30))
        spot.refresh_from_db()
        assert spot.is_available is False

        engine.sweep_expired(now=at(12))
        spot.refresh_from_db()
        assert spot.is_available is True
        assert spot.availability_checked_at == at(12)

    def test_booking_completed_by_another_sweep_is_skipped(self, engine, booked):
        repo = DjangoBookingRepository()
        stale = repo.get(booked.id)
        BookingModel.objects.filter(pk=booked.id).update(status=BookingModel.Status.COMPLETED)

        stale.complete(at(12))
        assert repo.save(stale, expected_status=BookingStatus.CONFIRMED) is False

        result = engine.sweep_expired(now=at(12))
        assert result.completed == []

    def test_celery_task_runs_the_sweep(self, booked):
        # The task uses the wall clock; this booking ended long before it
        BookingModel.objects.filter(pk=booked.id).update(
            start_time=at(10, day=1).replace(year=2020),
            end_time=at(12, day=1).replace(year=2020),
        )

        result = sweep_expired_bookings.delay().get()

        assert result["completed"] == 1
        assert BookingModel.objects.get(pk=booked.id).status == BookingModel.Status.COMPLETED
