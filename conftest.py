"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from shared.application.message_bus import MessageBus
from shared.domain.clock import FixedClock
from apps.bookings.application.bootstrap import build_booking_engine
from apps.spots.models import Spot
from apps.wallets.ledger import LedgerStore
from apps.wallets.payments import SimulatedCardGateway

USER = "user-1"
OTHER_USER = "user-2"


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    """An instant on 1 May 2030, UTC."""
    return datetime(2030, 5, day, hour, minute, tzinfo=timezone.utc)


class RecordingBus(MessageBus):
    def __init__(self):
        super().__init__()
        self.published = []

    def publish_events(self, events):
        events = list(events)
        self.published.extend(events)
        super().publish_events(events)

    def of_type(self, event_type):
        return [event for event in self.published if isinstance(event, event_type)]


@pytest.fixture
def clock():
    return FixedClock(at(8))


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def gateway():
    return SimulatedCardGateway(decline_tokens=["tok_declined"])


@pytest.fixture
def ledger(db):
    return LedgerStore()


@pytest.fixture
def spot(db):
    return Spot.objects.create(title="Queen St A1", latitude=-36.8485, longitude=174.7633)


@pytest.fixture
def other_spot(db):
    return Spot.objects.create(title="Queen St A2", latitude=-36.8486, longitude=174.7634)


@pytest.fixture
def engine(db, clock, gateway, ledger, bus):
    return build_booking_engine(clock=clock, gateway=gateway, ledger=ledger, bus=bus)


@pytest.fixture
def funded(ledger):
    """Put money in a user's wallet: funded(USER, "50.00")."""

    def fund(user_id: str = USER, amount: str = "50.00"):
        ledger.credit(user_id, amount, "Test funds")
        return ledger.get_balance(user_id)

    return fund
