# fx_ledger/core/models/notification.py

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.enums.registration_state import RegistrationState
from fx_ledger.core.models.response import OwnerFailure, StatusPayload

NEVER_NOTIFIED = datetime(1970, 1, 1, tzinfo=timezone.utc)


class NotificationState(BaseModel):
    """
    Per-owner throttle state. Lives only for the lifetime of the process.
    """
    owner_id: int
    destination: str = Field(..., description="Opaque delivery address, e.g. a chat id")
    registration: RegistrationState = RegistrationState.IDLE
    last_notified_pnl: Decimal = Decimal(0)
    last_notified_rate: Decimal = Decimal(0)
    last_notification_time: datetime = NEVER_NOTIFIED


class PnLNotification(BaseModel):
    """
    Payload handed to a Notifier when a P&L update is emitted.
    """
    owner_id: int
    destination: str
    status: StatusPayload
    pnl_change: Optional[Decimal] = Field(
        None, description="Unrealized profit delta against the previous notification; None on the first one"
    )
    created_at: datetime


class NotificationResult(BaseModel):
    """
    What happened to one owner during a check or a forced notification.
    """
    owner_id: int
    outcome: NotificationOutcome
    notification: Optional[PnLNotification] = None
    error_message: Optional[str] = None


class SweepReport(BaseModel):
    """
    Summary of one pass over all registered owners.
    """
    started_at: datetime
    checked: int = 0
    results: List[NotificationResult] = Field(default_factory=list)
    failures: List[OwnerFailure] = Field(default_factory=list)

    @property
    def notified_owner_ids(self) -> List[int]:
        return [r.owner_id for r in self.results if r.outcome == NotificationOutcome.SENT]


class RegistrationStatus(BaseModel):
    """
    Where an owner stands in the notification lifecycle.
    """
    owner_id: int
    registration: RegistrationState
