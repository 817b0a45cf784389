# fx_ledger/core/db.py

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- Acquisition lots. Quantities and rates are stored as TEXT to keep Decimal exact.
CREATE TABLE IF NOT EXISTS lots (
    lot_id INTEGER PRIMARY KEY,
    owner_id INTEGER NOT NULL,
    original_quantity TEXT NOT NULL,
    remaining_quantity TEXT NOT NULL,
    acquisition_rate TEXT NOT NULL,
    acquisition_date TEXT NOT NULL,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_lots_owner ON lots(owner_id);

-- Disposal records (append-only)
CREATE TABLE IF NOT EXISTS disposals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL,
    disposed_quantity TEXT NOT NULL,
    disposal_date TEXT NOT NULL,
    disposal_rate TEXT NOT NULL,
    proceeds_local TEXT NOT NULL,
    cost_basis_consumed TEXT NOT NULL,
    realized_profit TEXT NOT NULL,
    allocations TEXT NOT NULL, -- JSON
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_disposals_owner ON disposals(owner_id);

-- Upstream rate cache
CREATE TABLE IF NOT EXISTS rate_cache (
    provider TEXT NOT NULL,
    currency_code TEXT NOT NULL,
    rate_date TEXT NOT NULL,
    rate TEXT NOT NULL,
    cached_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    PRIMARY KEY (provider, currency_code, rate_date)
);
"""


class Database:
    """
    SQLite access for the ledger and the rate cache.

    Each thread gets its own connection to the same file; SQLite serializes
    writers, and WAL mode lets readers proceed while a write is in flight.
    """

    def __init__(self, path: Path, timeout: float = 30.0):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

    @property
    def connection(self) -> sqlite3.Connection:
        """Connection of the calling thread (created if needed)."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(str(self.path), timeout=self.timeout, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
            logger.debug(f"SQLite connection opened: {self.path}")
        return conn

    def query(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Runs a SELECT and returns the rows as dictionaries."""
        cursor = self.connection.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def execute(self, sql: str, params: tuple = ()) -> int:
        """Runs one INSERT, UPDATE or DELETE, commits, and returns the affected row count."""
        with self.connection as conn:
            cursor = conn.execute(sql, params)
        return cursor.rowcount

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Several statements committed together, or rolled back together on error."""
        with self.connection as conn:
            yield conn

    def init_schema(self) -> None:
        conn = self.connection
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        logger.info(f"Database schema initialized: {self.path}")

    def close(self) -> None:
        """Closes every connection opened through this instance."""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()
        logger.info(f"SQLite connections closed: {self.path}")
