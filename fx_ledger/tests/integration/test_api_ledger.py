# fx_ledger/tests/integration/test_api_ledger.py

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from fx_ledger.api.dependencies import get_services, get_settings
from fx_ledger.api.main import app
from fx_ledger.core.config.settings import Settings
from fx_ledger.core.exceptions import RateUnavailableError
from fx_ledger.tests.fakes import TODAY

PREFIX = "/api/v1"


@pytest.fixture
def client(services):
    """Provides a TestClient whose services use fake providers and a frozen clock."""
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def acquire(client, owner_id, quantity, date_str):
    return client.post(f"{PREFIX}/owners/{owner_id}/acquisitions", json={"quantity": quantity, "date": date_str})


def test_root_redirects_to_docs(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/docs"


def test_acquire_and_list_lots(client):
    response = acquire(client, 1, "100", "2026-01-01")

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert Decimal(body["payload"]["lot"]["cost_basis"]) == Decimal("4000")
    assert Decimal(body["payload"]["new_balance"]) == Decimal("100")

    lots = client.get(f"{PREFIX}/owners/1/lots").json()
    assert len(lots) == 1
    assert lots[0]["acquisition_date"] == "2026-01-01"


def test_acquire_unknown_rate_date(client):
    response = acquire(client, 1, "100", "2025-12-31")

    assert response.status_code == 404
    assert response.json()["error_kind"] == "RATE_NOT_FOUND"


@pytest.mark.parametrize("body", [
    {"quantity": "0", "date": "2026-01-01"},
    {"quantity": "-5", "date": "2026-01-01"},
    {"quantity": "10", "date": "01/01/2026"},
    {"quantity": "10"},
])
def test_invalid_body_is_rejected(client, body, primary):
    response = client.post(f"{PREFIX}/owners/1/acquisitions", json=body)

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["error_kind"] == "INVALID_INPUT"
    assert primary.calls == []


def test_fifo_disposal_and_status(client):
    acquire(client, 1, "50", "2026-01-01")
    acquire(client, 1, "100", "2026-01-15")

    response = client.post(f"{PREFIX}/owners/1/disposals", json={"quantity": "75", "date": TODAY.isoformat()})

    assert response.status_code == 200
    payload = response.json()["payload"]
    assert Decimal(payload["realized_profit"]) == Decimal("212.5")
    assert [Decimal(a["consumed_quantity"]) for a in payload["allocations"]] == [Decimal("50"), Decimal("25")]

    status = client.get(f"{PREFIX}/owners/1/status").json()["payload"]
    assert Decimal(status["balance"]) == Decimal("75")
    assert Decimal(status["unrealized_profit"]) == Decimal("112.5")

    history = client.get(f"{PREFIX}/owners/1/disposals").json()
    assert len(history) == 1


def test_disposal_over_balance(client):
    acquire(client, 1, "10", "2026-01-01")

    response = client.post(f"{PREFIX}/owners/1/disposals", json={"quantity": "11", "date": TODAY.isoformat()})

    assert response.status_code == 409
    body = response.json()
    assert body["error_kind"] == "INSUFFICIENT_BALANCE"
    assert Decimal(body["current_balance"]) == Decimal("10")


def test_status_when_rates_unavailable(client, primary, secondary):
    secondary.rate = None
    primary.error = RateUnavailableError("NBU down")

    response = client.get(f"{PREFIX}/owners/1/status")

    assert response.status_code == 503
    assert response.json()["error_kind"] == "RATE_UNAVAILABLE"


def test_notification_lifecycle(client, notifier):
    acquire(client, 1, "100", "2026-01-01")

    registered = client.put(f"{PREFIX}/owners/1/notifications", json={"destination": "chat-1"})
    assert registered.status_code == 200
    assert registered.json()["registration"] == "IDLE"

    report = client.post(f"{PREFIX}/notifications/sweep").json()
    assert report["checked"] == 1
    assert report["results"][0]["outcome"] == "SENT"
    assert len(notifier.sent) == 1

    report = client.post(f"{PREFIX}/notifications/sweep").json()
    assert report["results"][0]["outcome"] == "SKIPPED_TOO_SOON"

    assert client.delete(f"{PREFIX}/owners/1/notifications").status_code == 204
    assert client.post(f"{PREFIX}/notifications/sweep").json()["checked"] == 0


def test_test_notification(client, notifier):
    acquire(client, 1, "100", "2026-01-01")

    response = client.post(f"{PREFIX}/owners/1/notifications/test", json={"destination": "chat-1"})

    assert response.status_code == 200
    assert response.json()["outcome"] == "SENT"
    assert notifier.sent[0].destination == "chat-1"

    notifier.fail = True
    response = client.post(f"{PREFIX}/owners/1/notifications/test", json={"destination": "chat-1"})
    assert response.status_code == 503
    assert response.json()["outcome"] == "FAILED"


def test_access_restricted_to_allowed_owner(client):
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, ALLOWED_OWNER_ID=1)

    assert acquire(client, 2, "10", "2026-01-01").status_code == 403
    assert client.get(f"{PREFIX}/owners/2/status").status_code == 403
    assert acquire(client, 1, "10", "2026-01-01").status_code == 201


def test_registration_status(client, notifier):
    assert client.get(f"{PREFIX}/owners/1/notifications").json() == {"owner_id": 1, "registration": "UNREGISTERED"}

    client.put(f"{PREFIX}/owners/1/notifications", json={"destination": "chat-1"})
    assert client.get(f"{PREFIX}/owners/1/notifications").json()["registration"] == "IDLE"

    acquire(client, 1, "100", "2026-01-01")
    client.post(f"{PREFIX}/notifications/sweep")
    assert client.get(f"{PREFIX}/owners/1/notifications").json()["registration"] == "NOTIFIED"


def test_sweep_restricted_to_allowed_owner(client):
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, ALLOWED_OWNER_ID=1)

    assert client.post(f"{PREFIX}/notifications/sweep").status_code == 403
    assert client.post(f"{PREFIX}/notifications/sweep", headers={"X-Owner-Id": "2"}).status_code == 403
    assert client.get(f"{PREFIX}/owners/2/notifications").status_code == 403

    response = client.post(f"{PREFIX}/notifications/sweep", headers={"X-Owner-Id": "1"})
    assert response.status_code == 200
    assert response.json()["checked"] == 0


def test_sweep_open_without_allowed_owner(client):
    assert client.post(f"{PREFIX}/notifications/sweep").status_code == 200
