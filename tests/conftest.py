"""Shared fixtures: an in-memory POS system on a fixed clock."""

from datetime import datetime, timezone

import pytest

from core.config.rules import PosSettings
from core.ledger_store.memory import InMemoryLedgerStore
from core.time.clock import FixedClock

NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def settings():
    return PosSettings()


@pytest.fixture
def system(store, clock, settings):
    from core.bootstrap.wiring import build_pos_system

    return build_pos_system(store=store, settings=settings, clock=clock)


@pytest.fixture
def latte(system):
    return system.catalog.save_product("LAT", "Latte", "50.00", category="coffee")


@pytest.fixture
def mocha(system):
    return system.catalog.save_product("MOC", "Mocha", "55.00", category="coffee")
