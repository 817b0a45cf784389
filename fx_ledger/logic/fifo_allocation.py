# fx_ledger/logic/fifo_allocation.py
import logging
from decimal import Decimal
from typing import List, Sequence

from fx_ledger.core.exceptions import InsufficientBalanceError, InvalidInputError
from fx_ledger.logic.cost_objects import AcquisitionLot, Allocation

logger = logging.getLogger(__name__)


def available_quantity(lots: Sequence[AcquisitionLot]) -> Decimal:
    return sum((lot.remaining_quantity for lot in lots if lot.is_open), Decimal(0))


def allocate(owner_id: int, lots: Sequence[AcquisitionLot], need: Decimal) -> List[Allocation]:
    """
    Plans a First-In, First-Out consumption of `need` units across `lots`.

    The lots must already be in FIFO order (see LotSorter). Nothing is mutated:
    the returned plan lists, oldest first, how much each lot gives up and the
    proportional cost basis that goes with it. Applying the plan is the ledger's job.

    Raises:
        InvalidInputError: need is not positive.
        InsufficientBalanceError: the open lots cannot cover need.
    """
    if need <= Decimal(0):
        raise InvalidInputError(f"Quantity to allocate must be positive, got {need}.")

    available = available_quantity(lots)
    logger.debug(f"FIFO plan: allocating {need:.2f} for owner {owner_id}. Available: {available:.2f}. Lots: {[lot.lot_id for lot in lots if lot.is_open]}")

    if need > available:
        logger.warning(f"FIFO plan: insufficient balance for owner {owner_id}. Required: {need:.2f}, Available: {available:.2f}.")
        raise InsufficientBalanceError(owner_id, need, available)

    plan: List[Allocation] = []
    still_needed = need

    for lot in lots:
        if still_needed <= Decimal(0):
            break
        if not lot.is_open:
            continue

        take = min(lot.remaining_quantity, still_needed)
        plan.append(Allocation(lot=lot, consumed_quantity=take, cost_basis_consumed=lot.cost_basis_for(take)))
        still_needed -= take
        logger.debug(f"  FIFO plan: take {take:.2f} from lot {lot.lot_id} (remaining {lot.remaining_quantity:.2f}). Still needed: {still_needed:.2f}.")

    return plan
