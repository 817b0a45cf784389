# fx_ledger/core/models/response.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from fx_ledger.core.enums.error_kind import ErrorKind
from fx_ledger.core.exceptions import LedgerError
from fx_ledger.core.models.disposal import AllocationRecord


class OwnerFailure(BaseModel):
    """
    Represents an owner whose processing failed, along with the reason for failure.
    """
    owner_id: int = Field(..., description="The owner whose processing failed.")
    error_reason: str = Field(..., description="The reason why processing failed.")


class OperationResult(BaseModel):
    """
    Common shape of every result handed back to the transport shell:
    a success flag, and on failure an error kind plus a readable message.
    """
    success: bool = Field(..., description="Whether the operation completed")
    error_kind: Optional[ErrorKind] = Field(None, description="Failure category when success is false")
    error_message: Optional[str] = Field(None, description="Human-readable failure reason")

    @classmethod
    def from_error(cls, error: LedgerError, **kwargs):
        return cls(success=False, error_kind=error.kind, error_message=error.message, **kwargs)


class LotView(BaseModel):
    """Read-only projection of an acquisition lot."""
    lot_id: int
    owner_id: int
    acquisition_date: date
    original_quantity: Decimal
    remaining_quantity: Decimal
    acquisition_rate: Decimal
    cost_basis: Decimal
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AcquisitionPayload(BaseModel):
    lot: LotView
    new_balance: Decimal = Field(..., description="Balance after the lot was recorded")


class AcquisitionResult(OperationResult):
    payload: Optional[AcquisitionPayload] = None


class DisposalPayload(BaseModel):
    disposed_quantity: Decimal
    disposal_date: date
    disposal_rate: Decimal
    proceeds_local: Decimal
    cost_basis_consumed: Decimal
    realized_profit: Decimal
    allocations: List[AllocationRecord] = Field(default_factory=list)
    new_balance: Decimal = Field(..., description="Balance recomputed after the lots were consumed")


class DisposalResult(OperationResult):
    payload: Optional[DisposalPayload] = None
    current_balance: Optional[Decimal] = Field(
        None, description="Balance at the time of a rejected disposal"
    )


class StatusPayload(BaseModel):
    """
    Unrealized position of an owner valued at the live disposal rate.
    """
    balance: Decimal
    cost_basis: Decimal
    current_value: Decimal
    unrealized_profit: Decimal
    live_rate: Decimal


class StatusResult(OperationResult):
    payload: Optional[StatusPayload] = None
