# fx_ledger/logic/owner_locks.py

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List


class OwnerLocks:
    """
    One lock per owner id, held only while someone uses it.

    An entry is created on first use and dropped once its last holder (or
    waiter) leaves, so querying arbitrary owner ids does not grow the table.
    """
    def __init__(self, factory: Callable[[], object] = threading.RLock):
        self._factory = factory
        # { owner_id: [lock, number of holders and waiters] }
        self._entries: Dict[int, List] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, owner_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(owner_id)
            if entry is None:
                entry = [self._factory(), 0]
                self._entries[owner_id] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[owner_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
