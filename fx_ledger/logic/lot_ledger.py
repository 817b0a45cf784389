# fx_ledger/logic/lot_ledger.py

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from fx_ledger.core.exceptions import InvalidInputError
from fx_ledger.core.models.disposal import DisposalRecord
from fx_ledger.logic.clock import Clock
from fx_ledger.logic.cost_objects import AcquisitionLot, Allocation
from fx_ledger.logic.fifo_allocation import allocate, available_quantity
from fx_ledger.logic.ledger_repository import LedgerRepository
from fx_ledger.logic.owner_locks import OwnerLocks
from fx_ledger.logic.sorter import LotSorter

logger = logging.getLogger(__name__)


class LotLedger:
    """
    Manages the acquisition lots of every owner and consumes them First-In, First-Out.

    All mutations for one owner are serialized by that owner's re-entrant lock.
    owner_scope() exposes the same lock to callers that need several ledger steps
    (balance check, consumption, disposal record) to commit as one unit.
    """
    def __init__(self, repository: LedgerRepository, clock: Clock, sorter: Optional[LotSorter] = None):
        self._repository = repository
        self._clock = clock
        self._sorter = sorter or LotSorter()
        self._locks = OwnerLocks()

    @contextmanager
    def owner_scope(self, owner_id: int) -> Iterator[None]:
        """
        Holds the owner's lock for the duration of the block. If the block raises,
        every lot's remaining quantity is restored and any lot or disposal appended
        inside the block is dropped before the exception propagates.
        """
        with self._locks.hold(owner_id):
            remaining_by_lot = {lot.lot_id: lot.remaining_quantity for lot in self._repository.lots_for(owner_id)}
            disposal_count = self._repository.disposal_count(owner_id)
            try:
                yield
            except BaseException:
                self._repository.restore(owner_id, remaining_by_lot, disposal_count)
                logger.warning(f"LotLedger: rolled back owner {owner_id} to {len(remaining_by_lot)} lots and {disposal_count} disposals.")
                raise

    def current_balance(self, owner_id: int) -> Decimal:
        with self._locks.hold(owner_id):
            balance = available_quantity(self._repository.lots_for(owner_id))
        logger.debug(f"LotLedger: Balance for owner {owner_id}: {balance}")
        return balance

    def open_position(self, owner_id: int) -> Tuple[Decimal, Decimal]:
        """(balance, remaining cost basis) read under the owner's lock."""
        with self._locks.hold(owner_id):
            open_lots = [lot for lot in self._repository.lots_for(owner_id) if lot.is_open]
        balance = sum((lot.remaining_quantity for lot in open_lots), Decimal(0))
        cost_basis = sum((lot.remaining_cost_basis for lot in open_lots), Decimal(0))
        return balance, cost_basis

    def lots(self, owner_id: int) -> List[AcquisitionLot]:
        """All lots of the owner in FIFO order, exhausted ones included."""
        with self._locks.hold(owner_id):
            return self._sorter.sort_lots(self._repository.lots_for(owner_id))

    def open_lots(self, owner_id: int) -> List[AcquisitionLot]:
        return [lot for lot in self.lots(owner_id) if lot.is_open]

    def record_acquisition(
        self,
        owner_id: int,
        quantity: Decimal,
        rate: Decimal,
        acquisition_date: date
    ) -> AcquisitionLot:
        """
        Creates a new lot. Rate lookup and date validation are the caller's responsibility.
        """
        if quantity <= Decimal(0):
            raise InvalidInputError(f"Acquisition quantity must be positive, got {quantity}.")

        with self.owner_scope(owner_id):
            lot = AcquisitionLot(
                lot_id=self._repository.next_lot_id(),
                owner_id=owner_id,
                quantity=quantity,
                acquisition_rate=rate,
                acquisition_date=acquisition_date,
                created_at=self._clock.now()
            )
            self._repository.add_lot(lot)
        logger.info(f"LotLedger: Recorded {lot!r}")
        return lot

    def consume_fifo(self, owner_id: int, quantity: Decimal) -> List[Allocation]:
        """
        Consumes quantity from the owner's open lots, oldest first.

        The plan is computed by allocate() without touching any lot, then applied
        under the owner's lock. Raises InsufficientBalanceError (nothing mutated)
        when the open lots cannot cover quantity.
        """
        with self.owner_scope(owner_id):
            plan = allocate(owner_id, self.open_lots(owner_id), quantity)
            for allocation in plan:
                lot = allocation.lot
                lot.remaining_quantity -= allocation.consumed_quantity
                self._repository.update_remaining(owner_id, lot.lot_id, lot.remaining_quantity)
                logger.debug(f"  LotLedger: Consumed {allocation.consumed_quantity:.2f} from lot {lot.lot_id}. Lot remaining: {lot.remaining_quantity:.2f}.")
        logger.debug(f"LotLedger: Finished consuming {quantity:.2f} for owner {owner_id} across {len(plan)} lots.")
        return plan

    def append_disposal(self, record: DisposalRecord) -> None:
        with self._locks.hold(record.owner_id):
            self._repository.append_disposal(record)

    def disposals(self, owner_id: int) -> List[DisposalRecord]:
        with self._locks.hold(owner_id):
            return self._repository.disposals_for(owner_id)
