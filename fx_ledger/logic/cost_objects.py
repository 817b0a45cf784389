# fx_ledger/logic/cost_objects.py

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


class AcquisitionLot:
    """
    Represents a single batch of foreign currency acquired on one date at one rate.

    original_quantity, acquisition_rate, cost_basis and acquisition_date are fixed
    at creation and exposed read-only. remaining_quantity is the only field that
    changes, and only the lot ledger decrements it.
    """
    def __init__(
        self,
        lot_id: int,
        owner_id: int,
        quantity: Decimal,
        acquisition_rate: Decimal,
        acquisition_date: date,
        created_at: Optional[datetime] = None
    ):
        self._lot_id = lot_id
        self._owner_id = owner_id
        self._original_quantity = quantity
        self._acquisition_rate = acquisition_rate
        self._cost_basis = quantity * acquisition_rate
        self._acquisition_date = acquisition_date
        self._created_at = created_at
        self.remaining_quantity = quantity

    @property
    def lot_id(self) -> int:
        return self._lot_id

    @property
    def owner_id(self) -> int:
        return self._owner_id

    @property
    def original_quantity(self) -> Decimal:
        return self._original_quantity

    @property
    def acquisition_rate(self) -> Decimal:
        return self._acquisition_rate

    @property
    def cost_basis(self) -> Decimal:
        """Local-currency cost of the whole original lot."""
        return self._cost_basis

    @property
    def acquisition_date(self) -> date:
        return self._acquisition_date

    @property
    def created_at(self) -> Optional[datetime]:
        return self._created_at

    @property
    def is_open(self) -> bool:
        return self.remaining_quantity > Decimal(0)

    def cost_basis_for(self, quantity: Decimal) -> Decimal:
        """
        Proportional share of the lot's cost basis for a quantity of it.
        Always computed against the original quantity so that realized and
        unrealized figures come from the same formula.
        """
        return quantity / self._original_quantity * self._cost_basis

    @property
    def remaining_cost_basis(self) -> Decimal:
        return self.cost_basis_for(self.remaining_quantity)

    def __repr__(self) -> str:
        return (f"AcquisitionLot(lot_id={self._lot_id}, owner_id={self._owner_id}, "
                f"date={self._acquisition_date.isoformat()}, "
                f"original_qty={self._original_quantity:.2f}, "
                f"remaining_qty={self.remaining_quantity:.2f}, "
                f"rate={self._acquisition_rate:.4f})")


@dataclass(frozen=True)
class Allocation:
    """One step of a FIFO plan: how much to take from which lot, and the cost basis that moves with it."""
    lot: AcquisitionLot
    consumed_quantity: Decimal
    cost_basis_consumed: Decimal
