# fx_ledger/tests/unit/test_rate_providers.py

import pytest
import requests
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from fx_ledger.core.exceptions import RateNotFoundError, RateUnavailableError
from fx_ledger.logic.rate_providers import MonobankRateProvider, NbuRateProvider

NBU_URL = "https://bank.gov.ua/NBUStatService/v1/statdirectory/exchange"
MONO_URL = "https://api.monobank.ua/bank/currency"

def fake_session(payload=None, error=None):
    """A requests.Session stand-in whose get() returns payload or raises error."""
    session = MagicMock()
    session.headers = {}
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session

@pytest.fixture
def nbu_payload():
    return [
        {"r030": 978, "txt": "Євро", "rate": 45.1234, "cc": "EUR", "exchangedate": "15.01.2026"},
        {"r030": 840, "txt": "Долар США", "rate": 42.0567, "cc": "USD", "exchangedate": "15.01.2026"},
    ]

@pytest.fixture
def monobank_payload():
    return [
        {"currencyCodeA": 978, "currencyCodeB": 980, "date": 1770192000, "rateBuy": 45.9, "rateSell": 46.6},
        {"currencyCodeA": 840, "currencyCodeB": 980, "date": 1770192000, "rateBuy": 43.55, "rateSell": 44.05},
        {"currencyCodeA": 985, "currencyCodeB": 980, "date": 1770192000, "rateCross": 11.7},
    ]

def test_nbu_fetch_rate(nbu_payload):
    session = fake_session(nbu_payload)
    provider = NbuRateProvider(NBU_URL, "USD", timeout=10, session=session)

    assert provider.fetch_rate(date(2026, 1, 15)) == Decimal("42.0567")
    session.get.assert_called_once_with(NBU_URL, params={"json": "", "date": "20260115"}, timeout=10)

def test_nbu_currency_missing_is_not_found(nbu_payload):
    provider = NbuRateProvider(NBU_URL, "GBP", timeout=10, session=fake_session(nbu_payload))

    with pytest.raises(RateNotFoundError) as exc_info:
        provider.fetch_rate(date(2026, 1, 15))
    assert exc_info.value.rate_date == date(2026, 1, 15)

def test_nbu_empty_day_is_not_found():
    provider = NbuRateProvider(NBU_URL, "USD", timeout=10, session=fake_session([]))
    with pytest.raises(RateNotFoundError):
        provider.fetch_rate(date(2030, 1, 1))

def test_nbu_transport_failure_is_unavailable():
    session = fake_session(error=requests.Timeout("read timed out"))
    provider = NbuRateProvider(NBU_URL, "USD", timeout=10, session=session)
    with pytest.raises(RateUnavailableError):
        provider.fetch_rate(date(2026, 1, 15))

def test_nbu_unexpected_payload_is_unavailable():
    provider = NbuRateProvider(NBU_URL, "USD", timeout=10, session=fake_session({"message": "busy"}))
    with pytest.raises(RateUnavailableError):
        provider.fetch_rate(date(2026, 1, 15))

def test_monobank_fetch_buy_rate(monobank_payload):
    session = fake_session(monobank_payload)
    provider = MonobankRateProvider(MONO_URL, 840, 980, timeout=10, session=session)

    assert provider.fetch_buy_rate() == Decimal("43.55")
    session.get.assert_called_once_with(MONO_URL, timeout=10)

def test_monobank_missing_pair_is_unavailable(monobank_payload):
    provider = MonobankRateProvider(MONO_URL, 826, 980, timeout=10, session=fake_session(monobank_payload))
    with pytest.raises(RateUnavailableError):
        provider.fetch_buy_rate()

def test_monobank_missing_buy_rate_is_unavailable():
    payload = [{"currencyCodeA": 840, "currencyCodeB": 980, "rateCross": 43.8}]
    provider = MonobankRateProvider(MONO_URL, 840, 980, timeout=10, session=fake_session(payload))
    with pytest.raises(RateUnavailableError):
        provider.fetch_buy_rate()

def test_monobank_http_error_is_unavailable():
    session = fake_session(error=requests.HTTPError("429 Too Many Requests"))
    provider = MonobankRateProvider(MONO_URL, 840, 980, timeout=10, session=session)
    with pytest.raises(RateUnavailableError):
        provider.fetch_buy_rate()

@pytest.mark.parametrize("rate", [float("nan"), float("inf"), "Infinity", 0, -42.05])
def test_nbu_unusable_rate_is_unavailable(rate):
    payload = [{"r030": 840, "txt": "Долар США", "rate": rate, "cc": "USD", "exchangedate": "15.01.2026"}]
    provider = NbuRateProvider(NBU_URL, "USD", timeout=10, session=fake_session(payload))
    with pytest.raises(RateUnavailableError, match="unusable rate"):
        provider.fetch_rate(date(2026, 1, 15))

@pytest.mark.parametrize("rate", [float("nan"), "-Infinity", -1])
def test_monobank_unusable_buy_rate_is_unavailable(rate):
    payload = [{"currencyCodeA": 840, "currencyCodeB": 980, "rateBuy": rate, "rateSell": 44.05}]
    provider = MonobankRateProvider(MONO_URL, 840, 980, timeout=10, session=fake_session(payload))
    with pytest.raises(RateUnavailableError, match="unusable rate"):
        provider.fetch_buy_rate()
