# fx_ledger/core/models/rate_cache.py

from datetime import date, datetime
from decimal import Decimal
from typing import Tuple
from pydantic import BaseModel, Field, ConfigDict

from fx_ledger.core.enums.rate_provider import RateProvider

CacheKey = Tuple[RateProvider, str, date]


class RateCacheEntry(BaseModel):
    """
    A memoized upstream rate lookup, unique per (provider, currency, date).
    """
    provider: RateProvider
    currency_code: str
    rate_date: date
    rate: Decimal
    cached_at: datetime
    expires_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> CacheKey:
        return (self.provider, self.currency_code, self.rate_date)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
