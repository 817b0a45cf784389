# fx_ledger/tests/conftest.py

import pytest
from datetime import timedelta
from decimal import getcontext

from fx_ledger.core.config.settings import Settings
from fx_ledger.logic.clock import DeterministicClock
from fx_ledger.logic.ledger_repository import InMemoryLedgerRepository
from fx_ledger.logic.lot_ledger import LotLedger
from fx_ledger.logic.rate_cache import RateCache
from fx_ledger.logic.rate_source import RateSource
from fx_ledger.services.container import build_services
from fx_ledger.tests.fakes import LIVE_RATE, NOW, PRIMARY_RATES, FakeHistoricalProvider, FakeLiveProvider, RecordingNotifier

# Set the same precision as the application for consistent testing
getcontext().prec = 28

@pytest.fixture
def clock():
    """A clock frozen at 2026-02-04 12:00 UTC."""
    return DeterministicClock(NOW)


@pytest.fixture
def primary():
    return FakeHistoricalProvider(PRIMARY_RATES)


@pytest.fixture
def secondary():
    return FakeLiveProvider(LIVE_RATE)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def rate_cache(clock):
    return RateCache(clock)


@pytest.fixture
def rate_source(primary, secondary, rate_cache, clock):
    """RateSource wired to the fake providers with the default TTLs."""
    return RateSource(
        primary=primary,
        secondary=secondary,
        cache=rate_cache,
        clock=clock,
        currency="USD",
        historical_ttl=timedelta(days=180),
        live_ttl=timedelta(hours=6)
    )


@pytest.fixture
def ledger(clock):
    """An empty in-memory lot ledger."""
    return LotLedger(InMemoryLedgerRepository(), clock)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, STORAGE_BACKEND="memory")


@pytest.fixture
def services(test_settings, clock, primary, secondary, notifier):
    """The full object graph, with fakes at every upstream boundary."""
    return build_services(test_settings, clock=clock, primary=primary, secondary=secondary, notifier=notifier)
