# fx_ledger/logic/rate_cache.py

import logging
import threading
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional, Protocol

from fx_ledger.core.enums.rate_provider import RateProvider
from fx_ledger.core.models.rate_cache import CacheKey, RateCacheEntry
from fx_ledger.logic.clock import Clock

logger = logging.getLogger(__name__)


class RateStore(Protocol):
    """Where cache entries live. Expiry is decided by RateCache, not by the store."""

    def get(self, key: CacheKey) -> Optional[RateCacheEntry]:
        ...

    def put(self, entry: RateCacheEntry) -> None:
        """Inserts or replaces the entry for its key."""
        ...

    def delete_expired(self, now: datetime) -> int:
        ...

    def __len__(self) -> int:
        ...


class InMemoryRateStore:
    def __init__(self):
        self._entries: Dict[CacheKey, RateCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[RateCacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, entry: RateCacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RateCache:
    """
    Upstream rates keyed by (provider, currency, date), each with its own expiry.

    An entry whose expires_at has passed is treated as absent by get(); it stays
    in the store until purge_expired() runs or the key is written again.
    """

    def __init__(self, clock: Clock, store: Optional[RateStore] = None):
        self._clock = clock
        self._store = store if store is not None else InMemoryRateStore()

    def get(self, provider: RateProvider, currency_code: str, rate_date: date) -> Optional[Decimal]:
        entry = self._store.get((provider, currency_code, rate_date))
        if entry is None:
            logger.debug(f"Rate cache MISS: {provider.value} {currency_code} {rate_date.isoformat()}")
            return None
        if entry.is_expired(self._clock.now()):
            logger.debug(f"Rate cache EXPIRED: {provider.value} {currency_code} {rate_date.isoformat()} (expired at {entry.expires_at.isoformat()})")
            return None
        logger.debug(f"Rate cache HIT: {provider.value} {currency_code} {rate_date.isoformat()} -> {entry.rate}")
        return entry.rate

    def put(
        self,
        provider: RateProvider,
        currency_code: str,
        rate_date: date,
        rate: Decimal,
        ttl: timedelta
    ) -> RateCacheEntry:
        """Inserts or replaces the entry for the key; last writer wins."""
        now = self._clock.now()
        entry = RateCacheEntry(
            provider=provider,
            currency_code=currency_code,
            rate_date=rate_date,
            rate=rate,
            cached_at=now,
            expires_at=now + ttl
        )
        self._store.put(entry)
        logger.debug(f"Rate cache STORE: {provider.value} {currency_code} {rate_date.isoformat()} -> {rate} until {entry.expires_at.isoformat()}")
        return entry

    def purge_expired(self) -> int:
        """Physically removes expired entries and returns how many were dropped."""
        purged = self._store.delete_expired(self._clock.now())
        if purged:
            logger.info(f"Rate cache purged {purged} expired entries.")
        return purged

    def __len__(self) -> int:
        return len(self._store)
