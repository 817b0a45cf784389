# fx_ledger/logic/rate_source.py

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from fx_ledger.core.enums.error_kind import ErrorKind
from fx_ledger.core.enums.rate_provider import RateProvider
from fx_ledger.core.exceptions import RateUnavailableError
from fx_ledger.logic.clock import Clock
from fx_ledger.logic.rate_cache import RateCache
from fx_ledger.logic.rate_providers import HistoricalRateProvider, LiveRateProvider

logger = logging.getLogger(__name__)


class RateSource:
    """
    Supplies acquisition and disposal rates for calendar dates.

    Acquisition rates always come from the primary (historical) provider.
    Disposal rates come from the secondary (live) provider only for today;
    every other date, and any failure of the secondary, falls through to
    the primary provider.
    """

    def __init__(
        self,
        primary: HistoricalRateProvider,
        secondary: LiveRateProvider,
        cache: RateCache,
        clock: Clock,
        currency: str,
        historical_ttl: timedelta,
        live_ttl: timedelta
    ):
        self._primary = primary
        self._secondary = secondary
        self._cache = cache
        self._clock = clock
        self._currency = currency
        self._historical_ttl = historical_ttl
        self._live_ttl = live_ttl

    def get_acquisition_rate(self, rate_date: date) -> Decimal:
        """
        Rate used as the cost-basis anchor of a lot. Cached for the long TTL
        because historical quotes never change.

        Raises:
            RateNotFoundError: the primary provider has no quote for the date.
            RateUnavailableError: the primary provider could not be reached.
        """
        cached = self._cache.get(RateProvider.PRIMARY, self._currency, rate_date)
        if cached is not None:
            return cached

        rate = self._primary.fetch_rate(rate_date)
        self._cache.put(RateProvider.PRIMARY, self._currency, rate_date, rate, self._historical_ttl)
        return rate

    def get_disposal_rate(self, rate_date: date) -> Decimal:
        """
        Rate at which foreign currency is sold on rate_date.

        The live provider has no history, so any date other than today is
        priced with the acquisition rate. For today the live provider is tried
        first; if it fails the acquisition rate for today is used instead and
        the live provider's error is dropped.
        """
        today = self._clock.today()
        if rate_date != today:
            logger.debug(f"Disposal date {rate_date.isoformat()} is not today ({today.isoformat()}), using primary rate.")
            return self.get_acquisition_rate(rate_date)

        rate, error_kind = self._try_secondary(rate_date, today)
        if rate is not None:
            return rate

        logger.warning(f"Live rate unavailable ({error_kind.value}), falling back to primary rate for {today.isoformat()}.")
        return self.get_acquisition_rate(today)

    def get_live_disposal_rate(self) -> Decimal:
        return self.get_disposal_rate(self._clock.today())

    def _try_secondary(self, rate_date: date, today: date) -> Tuple[Optional[Decimal], Optional[ErrorKind]]:
        """
        One attempt at the secondary provider. Never raises for provider
        failures; returns (rate, None) or (None, kind).
        """
        cached = self._cache.get(RateProvider.SECONDARY, self._currency, rate_date)
        if cached is not None:
            return cached, None

        try:
            rate = self._secondary.fetch_buy_rate()
        except RateUnavailableError as e:
            logger.info(f"Secondary provider failed: {e.message}")
            return None, e.kind

        ttl = self._live_ttl if rate_date == today else self._historical_ttl
        self._cache.put(RateProvider.SECONDARY, self._currency, rate_date, rate, ttl)
        return rate, None
