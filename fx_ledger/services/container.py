# fx_ledger/services/container.py

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple

from fx_ledger.core.config.settings import Settings
from fx_ledger.core.db import Database
from fx_ledger.logic.clock import Clock, SystemClock
from fx_ledger.logic.ledger_repository import InMemoryLedgerRepository, LedgerRepository
from fx_ledger.logic.lot_ledger import LotLedger
from fx_ledger.logic.notification_throttle import NotificationStateStore, NotificationThrottle
from fx_ledger.logic.rate_cache import InMemoryRateStore, RateCache, RateStore
from fx_ledger.logic.rate_providers import (
    HistoricalRateProvider,
    LiveRateProvider,
    MonobankRateProvider,
    NbuRateProvider,
)
from fx_ledger.logic.rate_source import RateSource
from fx_ledger.logic.sqlite_storage import SqliteLedgerRepository, SqliteRateStore
from fx_ledger.logic.valuation import ValuationEngine
from fx_ledger.services.ledger_service import LedgerService
from fx_ledger.services.notification_service import NotificationService
from fx_ledger.services.notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """The wired object graph shared by every request of one process."""
    clock: Clock
    rate_cache: RateCache
    rate_source: RateSource
    ledger: LotLedger
    ledger_service: LedgerService
    notification_service: NotificationService
    database: Optional[Database] = None


def _build_stores(settings: Settings) -> Tuple[Optional[Database], LedgerRepository, RateStore]:
    """Picks the ledger and rate cache storage named by STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        return None, InMemoryLedgerRepository(), InMemoryRateStore()
    if backend == "sqlite":
        database = Database(settings.DATABASE_PATH)
        database.init_schema()
        return database, SqliteLedgerRepository(database), SqliteRateStore(database)
    raise ValueError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}' (expected 'sqlite' or 'memory')")


def build_services(
    settings: Settings,
    clock: Optional[Clock] = None,
    primary: Optional[HistoricalRateProvider] = None,
    secondary: Optional[LiveRateProvider] = None,
    repository: Optional[LedgerRepository] = None,
    notifier: Optional[Notifier] = None
) -> Services:
    """
    Builds the services from settings. Any collaborator can be passed in
    instead, which is how tests swap in a fixed clock or fake providers.
    """
    clock = clock or SystemClock.for_timezone(settings.TIMEZONE)
    primary = primary or NbuRateProvider(
        url=settings.PRIMARY_RATE_URL,
        currency=settings.FOREIGN_CURRENCY,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS
    )
    secondary = secondary or MonobankRateProvider(
        url=settings.SECONDARY_RATE_URL,
        foreign_numeric=settings.FOREIGN_CURRENCY_NUMERIC,
        local_numeric=settings.LOCAL_CURRENCY_NUMERIC,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS
    )

    database, default_repository, rate_store = _build_stores(settings)
    rate_cache = RateCache(clock, rate_store)
    rate_source = RateSource(
        primary=primary,
        secondary=secondary,
        cache=rate_cache,
        clock=clock,
        currency=settings.FOREIGN_CURRENCY,
        historical_ttl=timedelta(days=settings.HISTORICAL_CACHE_TTL_DAYS),
        live_ttl=timedelta(hours=settings.LIVE_CACHE_TTL_HOURS)
    )
    ledger = LotLedger(repository or default_repository, clock)
    valuation = ValuationEngine(ledger, rate_source)

    notification_service = NotificationService(
        store=NotificationStateStore(),
        throttle=NotificationThrottle(timedelta(hours=settings.NOTIFICATION_MIN_INTERVAL_HOURS)),
        ledger=ledger,
        valuation=valuation,
        notifier=notifier or LoggingNotifier(),
        clock=clock
    )

    logger.info(f"Services built: {settings.FOREIGN_CURRENCY}/{settings.LOCAL_CURRENCY}, timezone {settings.TIMEZONE}, storage {settings.STORAGE_BACKEND}")
    return Services(
        clock=clock,
        rate_cache=rate_cache,
        rate_source=rate_source,
        ledger=ledger,
        ledger_service=LedgerService(ledger, rate_source, valuation, clock),
        notification_service=notification_service,
        database=database
    )
