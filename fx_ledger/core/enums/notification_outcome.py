# fx_ledger/core/enums/notification_outcome.py

from enum import Enum

class NotificationOutcome(str, Enum):
    """
    Result of evaluating a single owner during a notification check.
    """
    SENT = "SENT"
    SKIPPED_NO_BALANCE = "SKIPPED_NO_BALANCE"
    SKIPPED_TOO_SOON = "SKIPPED_TOO_SOON"
    SKIPPED_NOT_REGISTERED = "SKIPPED_NOT_REGISTERED"
    FAILED = "FAILED"
