# fx_ledger/logic/ledger_repository.py

import itertools
import threading
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Mapping, Protocol

from fx_ledger.core.models.disposal import DisposalRecord
from fx_ledger.logic.cost_objects import AcquisitionLot


class LedgerRepository(Protocol):
    """
    Storage for acquisition lots and disposal records, partitioned by owner.
    Implementations keep their own containers consistent; per-owner
    serialization is the LotLedger's job.
    """
    def next_lot_id(self) -> int:
        ...

    def add_lot(self, lot: AcquisitionLot) -> None:
        ...

    def lots_for(self, owner_id: int) -> List[AcquisitionLot]:
        """The owner's lots in insertion order."""
        ...

    def update_remaining(self, owner_id: int, lot_id: int, remaining: Decimal) -> None:
        ...

    def append_disposal(self, record: DisposalRecord) -> None:
        ...

    def disposals_for(self, owner_id: int) -> List[DisposalRecord]:
        ...

    def disposal_count(self, owner_id: int) -> int:
        ...

    def restore(self, owner_id: int, remaining_by_lot: Mapping[int, Decimal], disposal_count: int) -> None:
        """
        Puts the owner back to an earlier snapshot: lots not in remaining_by_lot
        are dropped, the others get their remaining quantity back, and disposals
        beyond disposal_count are dropped.
        """
        ...


class InMemoryLedgerRepository:
    """
    Process-local storage. Lots and disposals are kept in append order per owner.
    """
    def __init__(self):
        # Stores lots: { owner_id: [AcquisitionLot, ...] } in insertion order
        self._lots: Dict[int, List[AcquisitionLot]] = defaultdict(list)
        self._disposals: Dict[int, List[DisposalRecord]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

    def next_lot_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def add_lot(self, lot: AcquisitionLot) -> None:
        self._lots[lot.owner_id].append(lot)

    def lots_for(self, owner_id: int) -> List[AcquisitionLot]:
        return list(self._lots.get(owner_id, []))

    def update_remaining(self, owner_id: int, lot_id: int, remaining: Decimal) -> None:
        for lot in self._lots.get(owner_id, []):
            if lot.lot_id == lot_id:
                lot.remaining_quantity = remaining

    def append_disposal(self, record: DisposalRecord) -> None:
        self._disposals[record.owner_id].append(record)

    def disposals_for(self, owner_id: int) -> List[DisposalRecord]:
        return list(self._disposals.get(owner_id, []))

    def disposal_count(self, owner_id: int) -> int:
        return len(self._disposals.get(owner_id, []))

    def restore(self, owner_id: int, remaining_by_lot: Mapping[int, Decimal], disposal_count: int) -> None:
        if owner_id in self._lots:
            kept = [lot for lot in self._lots[owner_id] if lot.lot_id in remaining_by_lot]
            for lot in kept:
                lot.remaining_quantity = remaining_by_lot[lot.lot_id]
            self._lots[owner_id] = kept
        if owner_id in self._disposals:
            del self._disposals[owner_id][disposal_count:]
