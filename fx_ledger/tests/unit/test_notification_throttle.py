# fx_ledger/tests/unit/test_notification_throttle.py

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.enums.registration_state import RegistrationState
from fx_ledger.core.models.notification import NEVER_NOTIFIED
from fx_ledger.logic.notification_throttle import NotificationStateStore, NotificationThrottle

NOW = datetime(2026, 2, 4, 12, 0, 0, tzinfo=timezone.utc)

@pytest.fixture
def store():
    """Provides an empty NotificationStateStore."""
    return NotificationStateStore()

@pytest.fixture
def throttle():
    return NotificationThrottle(timedelta(hours=6))

def test_register_starts_idle_with_sentinel(store):
    state = store.register(1, "chat-1")

    assert state.registration == RegistrationState.IDLE
    assert state.last_notification_time == NEVER_NOTIFIED
    assert state.last_notified_pnl == Decimal("0")
    assert store.registration_of(1) == RegistrationState.IDLE
    assert store.registered_owners() == [1]

def test_register_twice_is_noop(store):
    store.register(1, "chat-1")
    store.mark_notified(1, Decimal("10"), Decimal("43"), NOW)

    state = store.register(1, "chat-other")

    assert state.registration == RegistrationState.NOTIFIED
    assert state.destination == "chat-1"
    assert state.last_notified_pnl == Decimal("10")

def test_unregistered_owner(store):
    assert store.get(1) is None
    assert store.registration_of(1) == RegistrationState.UNREGISTERED
    assert store.unregister(1) is False

def test_unregister_removes_state(store):
    store.register(1, "chat-1")
    assert store.unregister(1) is True
    assert store.registered_owners() == []

def test_mark_notified_replaces_state(store):
    original = store.register(1, "chat-1")
    updated = store.mark_notified(1, Decimal("112.5"), Decimal("43.5"), NOW)

    assert updated.registration == RegistrationState.NOTIFIED
    assert updated.last_notified_pnl == Decimal("112.5")
    assert updated.last_notified_rate == Decimal("43.5")
    assert updated.last_notification_time == NOW
    assert original.registration == RegistrationState.IDLE
    assert store.get(1) == updated

def test_mark_notified_after_unregister(store):
    store.register(1, "chat-1")
    store.unregister(1)
    assert store.mark_notified(1, Decimal("1"), Decimal("43"), NOW) is None
    assert store.get(1) is None

def test_first_check_is_due(store, throttle):
    state = store.register(1, "chat-1")
    assert throttle.skip_reason(state, Decimal("100"), NOW) is None

def test_zero_balance_skips(store, throttle):
    state = store.register(1, "chat-1")
    assert throttle.skip_reason(state, Decimal("0"), NOW) == NotificationOutcome.SKIPPED_NO_BALANCE

@pytest.mark.parametrize("elapsed, expected", [
    (timedelta(hours=1), NotificationOutcome.SKIPPED_TOO_SOON),
    (timedelta(hours=5, minutes=59), NotificationOutcome.SKIPPED_TOO_SOON),
    (timedelta(hours=6), None),
    (timedelta(days=1), None),
])
def test_minimum_interval(store, throttle, elapsed, expected):
    store.register(1, "chat-1")
    state = store.mark_notified(1, Decimal("10"), Decimal("43"), NOW)
    assert throttle.skip_reason(state, Decimal("100"), NOW + elapsed) == expected

def test_zero_balance_wins_over_interval(store, throttle):
    store.register(1, "chat-1")
    state = store.mark_notified(1, Decimal("10"), Decimal("43"), NOW)
    assert throttle.skip_reason(state, Decimal("0"), NOW + timedelta(hours=1)) == NotificationOutcome.SKIPPED_NO_BALANCE
