# fx_ledger/core/enums/error_kind.py

from enum import Enum

class ErrorKind(str, Enum):
    """
    Machine-readable failure categories carried by result records.
    """
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    RATE_NOT_FOUND = "RATE_NOT_FOUND"
    RATE_UNAVAILABLE = "RATE_UNAVAILABLE"
    INVALID_INPUT = "INVALID_INPUT"

