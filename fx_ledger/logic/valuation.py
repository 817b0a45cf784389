# fx_ledger/logic/valuation.py

import logging

from fx_ledger.core.models.response import StatusPayload
from fx_ledger.logic.lot_ledger import LotLedger
from fx_ledger.logic.rate_source import RateSource

logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Values an owner's open lots at the live disposal rate. Read-only.
    """
    def __init__(self, ledger: LotLedger, rate_source: RateSource):
        self._ledger = ledger
        self._rate_source = rate_source

    def get_status(self, owner_id: int) -> StatusPayload:
        """
        Balance and remaining cost basis come from one consistent read of the
        open lots; the cost basis of each lot is its proportional share
        remaining / original x cost_basis.
        """
        balance, cost_basis = self._ledger.open_position(owner_id)

        live_rate = self._rate_source.get_live_disposal_rate()
        current_value = balance * live_rate
        unrealized_profit = current_value - cost_basis

        logger.debug(f"Valuation for owner {owner_id}: balance={balance:.2f}, cost_basis={cost_basis:.2f}, rate={live_rate}, unrealized={unrealized_profit:.2f}")
        return StatusPayload(
            balance=balance,
            cost_basis=cost_basis,
            current_value=current_value,
            unrealized_profit=unrealized_profit,
            live_rate=live_rate
        )
