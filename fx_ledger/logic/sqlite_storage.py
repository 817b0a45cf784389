# fx_ledger/logic/sqlite_storage.py

import itertools
import json
import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from fx_ledger.core.db import Database
from fx_ledger.core.models.disposal import DisposalRecord
from fx_ledger.core.models.rate_cache import CacheKey, RateCacheEntry
from fx_ledger.logic.cost_objects import AcquisitionLot

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class SqliteLedgerRepository:
    """
    Durable lots and disposal records. Decimals are stored as their exact
    string form; dates and timestamps as ISO 8601.
    """
    def __init__(self, db: Database):
        self._db = db
        rows = self._db.query("SELECT COALESCE(MAX(lot_id), 0) AS last_id FROM lots")
        self._ids = itertools.count(rows[0]["last_id"] + 1)
        self._ids_lock = threading.Lock()

    def next_lot_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def add_lot(self, lot: AcquisitionLot) -> None:
        self._db.execute(
            """INSERT INTO lots (lot_id, owner_id, original_quantity, remaining_quantity,
                                 acquisition_rate, acquisition_date, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (lot.lot_id, lot.owner_id, str(lot.original_quantity), str(lot.remaining_quantity),
             str(lot.acquisition_rate), lot.acquisition_date.isoformat(), _iso(lot.created_at))
        )

    def lots_for(self, owner_id: int) -> List[AcquisitionLot]:
        rows = self._db.query("SELECT * FROM lots WHERE owner_id = ? ORDER BY lot_id", (owner_id,))
        return [self._lot_from_row(row) for row in rows]

    def update_remaining(self, owner_id: int, lot_id: int, remaining: Decimal) -> None:
        self._db.execute(
            "UPDATE lots SET remaining_quantity = ? WHERE owner_id = ? AND lot_id = ?",
            (str(remaining), owner_id, lot_id)
        )

    def append_disposal(self, record: DisposalRecord) -> None:
        allocations = json.dumps([a.model_dump(mode="json") for a in record.allocations])
        self._db.execute(
            """INSERT INTO disposals (owner_id, disposed_quantity, disposal_date, disposal_rate,
                                      proceeds_local, cost_basis_consumed, realized_profit,
                                      allocations, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (record.owner_id, str(record.disposed_quantity), record.disposal_date.isoformat(),
             str(record.disposal_rate), str(record.proceeds_local), str(record.cost_basis_consumed),
             str(record.realized_profit), allocations, _iso(record.created_at))
        )

    def disposals_for(self, owner_id: int) -> List[DisposalRecord]:
        rows = self._db.query("SELECT * FROM disposals WHERE owner_id = ? ORDER BY id", (owner_id,))
        return [
            DisposalRecord.model_validate({**row, "allocations": json.loads(row["allocations"])})
            for row in rows
        ]

    def disposal_count(self, owner_id: int) -> int:
        rows = self._db.query("SELECT COUNT(*) AS n FROM disposals WHERE owner_id = ?", (owner_id,))
        return rows[0]["n"]

    def restore(self, owner_id: int, remaining_by_lot: Mapping[int, Decimal], disposal_count: int) -> None:
        with self._db.transaction() as conn:
            known = {row["lot_id"] for row in conn.execute("SELECT lot_id FROM lots WHERE owner_id = ?", (owner_id,))}
            for lot_id in known - set(remaining_by_lot):
                conn.execute("DELETE FROM lots WHERE lot_id = ?", (lot_id,))
            for lot_id, remaining in remaining_by_lot.items():
                conn.execute(
                    "UPDATE lots SET remaining_quantity = ? WHERE owner_id = ? AND lot_id = ?",
                    (str(remaining), owner_id, lot_id)
                )
            conn.execute(
                """DELETE FROM disposals WHERE owner_id = ? AND id NOT IN (
                       SELECT id FROM disposals WHERE owner_id = ? ORDER BY id LIMIT ?)""",
                (owner_id, owner_id, disposal_count)
            )
        logger.debug(f"Restored owner {owner_id} to {len(remaining_by_lot)} lots and {disposal_count} disposals.")

    @staticmethod
    def _lot_from_row(row: Dict[str, Any]) -> AcquisitionLot:
        lot = AcquisitionLot(
            lot_id=row["lot_id"],
            owner_id=row["owner_id"],
            quantity=Decimal(row["original_quantity"]),
            acquisition_rate=Decimal(row["acquisition_rate"]),
            acquisition_date=date.fromisoformat(row["acquisition_date"]),
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None
        )
        lot.remaining_quantity = Decimal(row["remaining_quantity"])
        return lot


class SqliteRateStore:
    """Rate cache entries that survive a restart, so the long historical TTL is honoured."""

    def __init__(self, db: Database):
        self._db = db

    def get(self, key: CacheKey) -> Optional[RateCacheEntry]:
        provider, currency_code, rate_date = key
        rows = self._db.query(
            "SELECT * FROM rate_cache WHERE provider = ? AND currency_code = ? AND rate_date = ?",
            (provider.value, currency_code, rate_date.isoformat())
        )
        return RateCacheEntry.model_validate(rows[0]) if rows else None

    def put(self, entry: RateCacheEntry) -> None:
        self._db.execute(
            """INSERT OR REPLACE INTO rate_cache (provider, currency_code, rate_date, rate, cached_at, expires_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (entry.provider.value, entry.currency_code, entry.rate_date.isoformat(),
             str(entry.rate), entry.cached_at.isoformat(), entry.expires_at.isoformat())
        )

    def delete_expired(self, now: datetime) -> int:
        # Timestamps may carry different UTC offsets, so expiry is compared in Python
        entries = [RateCacheEntry.model_validate(row) for row in self._db.query("SELECT * FROM rate_cache")]
        expired = [entry for entry in entries if entry.is_expired(now)]
        with self._db.transaction() as conn:
            for entry in expired:
                conn.execute(
                    "DELETE FROM rate_cache WHERE provider = ? AND currency_code = ? AND rate_date = ?",
                    (entry.provider.value, entry.currency_code, entry.rate_date.isoformat())
                )
        return len(expired)

    def __len__(self) -> int:
        return self._db.query("SELECT COUNT(*) AS n FROM rate_cache")[0]["n"]
