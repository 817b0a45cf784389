# fx_ledger/tests/unit/test_notification_service.py

import pytest
from datetime import date
from decimal import Decimal

from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.enums.registration_state import RegistrationState
from fx_ledger.core.exceptions import NotificationDeliveryError

@pytest.fixture
def service(services):
    return services.notification_service

@pytest.fixture
def fund(services):
    """Gives an owner 100 @ 40 (2026-01-01): cost basis 4000, worth 4350 at the live rate."""
    def _fund(owner_id, quantity="100"):
        assert services.ledger_service.acquire(owner_id, Decimal(quantity), date(2026, 1, 1)).success
    return _fund

def test_first_notification_has_no_delta(service, fund, notifier):
    fund(1)
    service.register(1, "chat-1")

    result = service.check_owner(1)

    assert result.outcome == NotificationOutcome.SENT
    assert len(notifier.sent) == 1
    sent = notifier.sent[0]
    assert sent.destination == "chat-1"
    assert sent.status.unrealized_profit == Decimal("350")
    assert sent.pnl_change is None
    assert service.registration_of(1) == RegistrationState.NOTIFIED

def test_second_check_within_interval_is_skipped(service, fund, notifier, clock):
    fund(1)
    service.register(1, "chat-1")
    service.check_owner(1)

    clock.advance(hours=5)
    result = service.check_owner(1)

    assert result.outcome == NotificationOutcome.SKIPPED_TOO_SOON
    assert len(notifier.sent) == 1

def test_notification_after_interval_reports_delta(service, fund, notifier, clock, secondary):
    fund(1)
    service.register(1, "chat-1")
    service.check_owner(1)

    clock.advance(hours=6)
    secondary.rate = Decimal("44")
    result = service.check_owner(1)

    assert result.outcome == NotificationOutcome.SENT
    assert result.notification.status.unrealized_profit == Decimal("400")
    assert result.notification.pnl_change == Decimal("50")

def test_zero_balance_is_skipped_without_rate_lookup(service, notifier, secondary):
    service.register(1, "chat-1")

    result = service.check_owner(1)

    assert result.outcome == NotificationOutcome.SKIPPED_NO_BALANCE
    assert secondary.calls == 0
    assert notifier.sent == []

def test_unregistered_owner_is_skipped(service, fund):
    fund(1)
    assert service.check_owner(1).outcome == NotificationOutcome.SKIPPED_NOT_REGISTERED

def test_failed_delivery_does_not_advance_state(service, fund, notifier):
    fund(1)
    service.register(1, "chat-1")
    notifier.fail = True

    with pytest.raises(NotificationDeliveryError):
        service.check_owner(1)
    assert service.registration_of(1) == RegistrationState.IDLE

    notifier.fail = False
    assert service.check_owner(1).outcome == NotificationOutcome.SENT

def test_unregister(service, fund):
    fund(1)
    service.register(1, "chat-1")
    assert service.unregister(1) is True
    assert service.registered_owners() == []
    assert service.registration_of(1) == RegistrationState.UNREGISTERED

def test_sweep_isolates_failures(service, fund, notifier):
    for owner_id in (1, 2, 3):
        fund(owner_id)
        service.register(owner_id, f"chat-{owner_id}")
    service.register(4, "chat-4")
    notifier.fail_for = {2}

    report = service.sweep()

    assert report.checked == 4
    assert sorted(report.notified_owner_ids) == [1, 3]
    assert [f.owner_id for f in report.failures] == [2]
    assert "chat unreachable" in report.failures[0].error_reason
    outcomes = {r.owner_id: r.outcome for r in report.results}
    assert outcomes[2] == NotificationOutcome.FAILED
    assert outcomes[4] == NotificationOutcome.SKIPPED_NO_BALANCE

def test_sweep_with_no_registered_owners(service):
    report = service.sweep()
    assert report.checked == 0
    assert report.results == []
    assert report.failures == []

def test_notify_now_ignores_interval_and_registers(service, fund, notifier):
    fund(1)

    first = service.notify_now(1, "chat-1")
    second = service.notify_now(1, "chat-1")

    assert first.outcome == NotificationOutcome.SENT
    assert second.outcome == NotificationOutcome.SENT
    assert second.notification.pnl_change == Decimal("0")
    assert service.registered_owners() == [1]
    assert len(notifier.sent) == 2

def test_notify_now_without_balance(service, notifier):
    result = service.notify_now(1, "chat-1")
    assert result.outcome == NotificationOutcome.SKIPPED_NO_BALANCE
    assert notifier.sent == []

def test_notify_now_reports_delivery_failure(service, fund, notifier):
    fund(1)
    notifier.fail = True

    result = service.notify_now(1, "chat-1")

    assert result.outcome == NotificationOutcome.FAILED
    assert result.error_message == "chat unreachable"
    assert service.registration_of(1) == RegistrationState.IDLE
