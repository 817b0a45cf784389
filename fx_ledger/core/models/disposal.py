# fx_ledger/core/models/disposal.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

class AllocationRecord(BaseModel):
    """
    The part of a disposal that was matched against one acquisition lot.
    """
    lot_id: int = Field(..., description="Lot the quantity was taken from")
    consumed_quantity: Decimal = Field(..., description="Foreign-currency quantity taken from the lot")
    cost_basis_consumed: Decimal = Field(..., description="Proportional cost basis moved out of the lot")

    model_config = ConfigDict(frozen=True)


class DisposalRecord(BaseModel):
    """
    Append-only record of one successful sale of foreign currency.
    """
    owner_id: int = Field(..., description="Holder of the currency")
    disposed_quantity: Decimal = Field(..., description="Foreign-currency quantity sold")
    disposal_date: date = Field(..., description="Calendar date of the sale")
    disposal_rate: Decimal = Field(..., description="Local-currency value of one unit on the disposal date")
    proceeds_local: Decimal = Field(..., description="disposed_quantity x disposal_rate")
    cost_basis_consumed: Decimal = Field(..., description="Sum of proportional cost basis of the matched lots")
    realized_profit: Decimal = Field(..., description="proceeds_local - cost_basis_consumed")
    allocations: List[AllocationRecord] = Field(default_factory=list, description="Lots matched by FIFO, oldest first")
    created_at: Optional[datetime] = Field(None, description="When the record was written")

    model_config = ConfigDict(frozen=True)
