# fx_ledger/services/ledger_service.py

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Tuple

from fx_ledger.core.exceptions import InsufficientBalanceError, InvalidInputError, LedgerError
from fx_ledger.core.models.disposal import AllocationRecord, DisposalRecord
from fx_ledger.core.models.response import (
    AcquisitionPayload,
    AcquisitionResult,
    DisposalPayload,
    DisposalResult,
    LotView,
    StatusResult,
)
from fx_ledger.logic.clock import Clock
from fx_ledger.logic.lot_ledger import LotLedger
from fx_ledger.logic.rate_source import RateSource
from fx_ledger.logic.valuation import ValuationEngine

logger = logging.getLogger(__name__)

class LedgerService:
    """
    Orchestrates acquisitions, disposals and status reads for the transport shell.
    Expected failures come back as result records with an error kind; only
    unexpected errors propagate.
    """
    def __init__(
        self,
        ledger: LotLedger,
        rate_source: RateSource,
        valuation: ValuationEngine,
        clock: Clock
    ):
        self._ledger = ledger
        self._rate_source = rate_source
        self._valuation = valuation
        self._clock = clock

    def acquire(self, owner_id: int, quantity: Any, acquisition_date: Any) -> AcquisitionResult:
        """
        Records a new lot valued at the primary provider's rate for acquisition_date.
        """
        logger.info(f"Acquisition requested: owner={owner_id}, quantity={quantity}, date={acquisition_date}")
        try:
            quantity, acquisition_date = _validate(quantity, acquisition_date)
            rate = self._rate_source.get_acquisition_rate(acquisition_date)
            lot = self._ledger.record_acquisition(owner_id, quantity, rate, acquisition_date)
            new_balance = self._ledger.current_balance(owner_id)
        except LedgerError as e:
            logger.warning(f"Acquisition failed for owner {owner_id}: {e.kind.value}: {e.message}")
            return AcquisitionResult.from_error(e)

        logger.info(f"Acquired {quantity} at {rate} on {acquisition_date.isoformat()} for owner {owner_id}. Cost basis: {lot.cost_basis:.2f}. New balance: {new_balance}")
        return AcquisitionResult(
            success=True,
            payload=AcquisitionPayload(lot=LotView.model_validate(lot), new_balance=new_balance)
        )

    def dispose(self, owner_id: int, quantity: Any, disposal_date: Any) -> DisposalResult:
        """
        Sells quantity on disposal_date, matching lots First-In, First-Out.

        The whole sequence (balance check, disposal rate, lot consumption,
        disposal record) runs inside the owner's ledger scope: concurrent
        disposals for the same owner cannot both pass the balance check, and a
        failure after the balance check leaves every lot as it was.
        """
        logger.info(f"Disposal requested: owner={owner_id}, quantity={quantity}, date={disposal_date}")
        try:
            quantity, disposal_date = _validate(quantity, disposal_date)
            with self._ledger.owner_scope(owner_id):
                balance = self._ledger.current_balance(owner_id)
                if balance < quantity:
                    raise InsufficientBalanceError(owner_id, quantity, balance)

                disposal_rate = self._rate_source.get_disposal_rate(disposal_date)
                plan = self._ledger.consume_fifo(owner_id, quantity)

                cost_basis_consumed = sum((a.cost_basis_consumed for a in plan), Decimal(0))
                proceeds_local = quantity * disposal_rate
                realized_profit = proceeds_local - cost_basis_consumed

                record = DisposalRecord(
                    owner_id=owner_id,
                    disposed_quantity=quantity,
                    disposal_date=disposal_date,
                    disposal_rate=disposal_rate,
                    proceeds_local=proceeds_local,
                    cost_basis_consumed=cost_basis_consumed,
                    realized_profit=realized_profit,
                    allocations=[
                        AllocationRecord(
                            lot_id=a.lot.lot_id,
                            consumed_quantity=a.consumed_quantity,
                            cost_basis_consumed=a.cost_basis_consumed
                        )
                        for a in plan
                    ],
                    created_at=self._clock.now()
                )
                self._ledger.append_disposal(record)
                new_balance = self._ledger.current_balance(owner_id)
        except InsufficientBalanceError as e:
            logger.warning(f"Disposal rejected for owner {owner_id}: {e.message}")
            return DisposalResult.from_error(e, current_balance=e.available)
        except LedgerError as e:
            logger.warning(f"Disposal failed for owner {owner_id}: {e.kind.value}: {e.message}")
            return DisposalResult.from_error(e)

        logger.info(f"Disposed {quantity} at {disposal_rate} for owner {owner_id}. Proceeds: {proceeds_local:.2f}, cost basis: {cost_basis_consumed:.2f}, profit: {realized_profit:.2f}. New balance: {new_balance}")
        return DisposalResult(
            success=True,
            payload=DisposalPayload(
                disposed_quantity=record.disposed_quantity,
                disposal_date=record.disposal_date,
                disposal_rate=record.disposal_rate,
                proceeds_local=record.proceeds_local,
                cost_basis_consumed=record.cost_basis_consumed,
                realized_profit=record.realized_profit,
                allocations=record.allocations,
                new_balance=new_balance
            )
        )

    def status(self, owner_id: int) -> StatusResult:
        try:
            payload = self._valuation.get_status(owner_id)
        except LedgerError as e:
            logger.warning(f"Status failed for owner {owner_id}: {e.kind.value}: {e.message}")
            return StatusResult.from_error(e)
        return StatusResult(success=True, payload=payload)

    def lots(self, owner_id: int) -> List[LotView]:
        return [LotView.model_validate(lot) for lot in self._ledger.lots(owner_id)]

    def disposals(self, owner_id: int) -> List[DisposalRecord]:
        return self._ledger.disposals(owner_id)


def _validate(quantity: Any, on_date: Any) -> Tuple[Decimal, date]:
    """
    Normalizes a (quantity, date) pair coming from the shell. Time of day is discarded.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, (Decimal, int, float, str)):
        raise InvalidInputError(f"Quantity must be a number, got {quantity!r}.")
    try:
        quantity = Decimal(str(quantity))
    except ArithmeticError as e:
        raise InvalidInputError(f"Quantity must be a number, got {quantity!r}.") from e
    if not quantity.is_finite() or quantity <= Decimal(0):
        raise InvalidInputError(f"Quantity must be positive, got {quantity}.")

    if isinstance(on_date, datetime):
        on_date = on_date.date()
    elif isinstance(on_date, str):
        try:
            on_date = date.fromisoformat(on_date)
        except ValueError as e:
            raise InvalidInputError(f"Malformed date {on_date!r}, expected YYYY-MM-DD.") from e
    elif not isinstance(on_date, date):
        raise InvalidInputError(f"Malformed date {on_date!r}, expected YYYY-MM-DD.")

    return quantity, on_date
