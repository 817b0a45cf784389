# fx_ledger/logic/rate_providers.py

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Protocol

import requests

from fx_ledger.core.exceptions import RateNotFoundError, RateUnavailableError

logger = logging.getLogger(__name__)


class HistoricalRateProvider(Protocol):
    """
    Authoritative source of per-date rates. Raises RateNotFoundError when the
    currency has no quote for the date and RateUnavailableError on transport failure.
    """
    currency: str

    def fetch_rate(self, rate_date: date) -> Decimal:
        ...


class LiveRateProvider(Protocol):
    """
    Market source of today's bank buy rate. Raises RateUnavailableError on any failure.
    """
    def fetch_buy_rate(self) -> Decimal:
        ...


class NbuRateProvider:
    """
    National Bank of Ukraine official exchange rates.

    The statdirectory endpoint returns every currency quoted on a date as a JSON
    list; the entry is matched by its alphabetic code ("cc") and its "rate" is
    the local-currency value of one unit.
    """

    def __init__(
        self,
        url: str,
        currency: str,
        timeout: float,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.currency = currency
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def fetch_rate(self, rate_date: date) -> Decimal:
        params = {
            "json": "",
            "date": rate_date.strftime("%Y%m%d")
        }
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"NBU request failed for {self.currency} on {rate_date.isoformat()}: {e}")
            raise RateUnavailableError(f"NBU rate fetch error: {e}") from e

        if not isinstance(data, list):
            raise RateUnavailableError(f"NBU returned an unexpected payload for {rate_date.isoformat()}")

        quote = next((item for item in data if isinstance(item, dict) and item.get("cc") == self.currency), None)
        if quote is None or quote.get("rate") is None:
            raise RateNotFoundError(self.currency, rate_date)

        rate = _to_decimal(quote["rate"])
        logger.info(f"NBU rate from API: {rate} ({rate_date.isoformat()})")
        return rate


class MonobankRateProvider:
    """
    Monobank public currency board.

    The endpoint lists every pair the bank trades; the pair is matched by the two
    ISO 4217 numeric codes and "rateBuy" (the rate the bank pays when buying the
    foreign currency from the customer) is returned.
    """

    def __init__(
        self,
        url: str,
        foreign_numeric: int,
        local_numeric: int,
        timeout: float,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.foreign_numeric = foreign_numeric
        self.local_numeric = local_numeric
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def fetch_buy_rate(self) -> Decimal:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RateUnavailableError(f"Monobank rate fetch error: {e}") from e

        if not isinstance(data, list):
            raise RateUnavailableError("Monobank returned an unexpected payload")

        pair = next(
            (item for item in data
             if isinstance(item, dict)
             and item.get("currencyCodeA") == self.foreign_numeric
             and item.get("currencyCodeB") == self.local_numeric),
            None
        )
        if pair is None or not pair.get("rateBuy"):
            raise RateUnavailableError("Buy rate not found in Monobank response")

        rate = _to_decimal(pair["rateBuy"])
        logger.info(f"Monobank rate from API: {rate}")
        return rate


def _to_decimal(value: Any) -> Decimal:
    try:
        rate = Decimal(str(value))
    except InvalidOperation as e:
        raise RateUnavailableError(f"Upstream returned a non-numeric rate: {value!r}") from e
    if not rate.is_finite() or rate <= Decimal(0):
        raise RateUnavailableError(f"Upstream returned an unusable rate: {value!r}")
    return rate
