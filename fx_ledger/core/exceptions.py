# fx_ledger/core/exceptions.py

from decimal import Decimal
from datetime import date
from typing import Optional

from fx_ledger.core.enums.error_kind import ErrorKind


class LedgerError(Exception):
    """
    Base class for every expected failure of the ledger and the rate source.
    Each subclass carries the ErrorKind that result records expose to callers.
    """
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(LedgerError):
    """Non-positive quantity or malformed date; raised before any state is touched."""
    kind = ErrorKind.INVALID_INPUT


class InsufficientBalanceError(LedgerError):
    """Requested disposal exceeds the owner's current balance."""
    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, owner_id: int, requested: Decimal, available: Decimal):
        super().__init__(
            f"Requested quantity ({requested:.2f}) exceeds available balance ({available:.2f}) for owner {owner_id}."
        )
        self.owner_id = owner_id
        self.requested = requested
        self.available = available


class RateNotFoundError(LedgerError):
    """The historical provider has no quote for the currency on the requested date."""
    kind = ErrorKind.RATE_NOT_FOUND

    def __init__(self, currency: str, rate_date: date, message: Optional[str] = None):
        super().__init__(message or f"{currency} rate not found for date {rate_date.isoformat()}")
        self.currency = currency
        self.rate_date = rate_date


class RateUnavailableError(LedgerError):
    """An upstream provider could not be reached or returned no usable quote."""
    kind = ErrorKind.RATE_UNAVAILABLE


class NotificationDeliveryError(Exception):
    """A Notifier could not deliver a P&L notification. Not a ledger failure, so it carries no ErrorKind."""

    def __init__(self, owner_id: int, message: str):
        super().__init__(message)
        self.owner_id = owner_id
        self.message = message
