# fx_ledger/services/notification_service.py

import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import List

from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.enums.registration_state import RegistrationState
from fx_ledger.core.exceptions import LedgerError, NotificationDeliveryError
from fx_ledger.core.models.notification import (
    NotificationResult,
    NotificationState,
    PnLNotification,
    SweepReport,
)
from fx_ledger.core.models.response import OwnerFailure
from fx_ledger.logic.clock import Clock
from fx_ledger.logic.lot_ledger import LotLedger
from fx_ledger.logic.notification_throttle import NotificationStateStore, NotificationThrottle
from fx_ledger.logic.owner_locks import OwnerLocks
from fx_ledger.logic.valuation import ValuationEngine
from fx_ledger.services.notifier import Notifier

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Decides, per registered owner, whether a fresh P&L notification is due,
    emits it through the notifier and records what was sent.
    """
    def __init__(
        self,
        store: NotificationStateStore,
        throttle: NotificationThrottle,
        ledger: LotLedger,
        valuation: ValuationEngine,
        notifier: Notifier,
        clock: Clock
    ):
        self._store = store
        self._throttle = throttle
        self._ledger = ledger
        self._valuation = valuation
        self._notifier = notifier
        self._clock = clock
        # Serializes check/emit/mark for one owner across overlapping sweeps.
        self._locks = OwnerLocks(threading.Lock)

    def register(self, owner_id: int, destination: str) -> NotificationState:
        return self._store.register(owner_id, destination)

    def unregister(self, owner_id: int) -> bool:
        return self._store.unregister(owner_id)

    def registration_of(self, owner_id: int) -> RegistrationState:
        return self._store.registration_of(owner_id)

    def registered_owners(self) -> List[int]:
        return self._store.registered_owners()

    def check_owner(self, owner_id: int) -> NotificationResult:
        """
        Runs the throttle for one owner and notifies if due.

        Ledger and delivery errors propagate; the state only advances after
        the notifier accepted the message.
        """
        with self._locks.hold(owner_id):
            state = self._store.get(owner_id)
            if state is None:
                return NotificationResult(owner_id=owner_id, outcome=NotificationOutcome.SKIPPED_NOT_REGISTERED)

            now = self._clock.now()
            balance = self._ledger.current_balance(owner_id)
            reason = self._throttle.skip_reason(state, balance, now)
            if reason is not None:
                return NotificationResult(owner_id=owner_id, outcome=reason)

            notification = self._emit(state, now)
            return NotificationResult(owner_id=owner_id, outcome=NotificationOutcome.SENT, notification=notification)

    def notify_now(self, owner_id: int, destination: str) -> NotificationResult:
        """
        Forced notification that ignores the minimum interval. Registers the
        owner first if needed. An empty balance still skips.
        """
        self._store.register(owner_id, destination)
        with self._locks.hold(owner_id):
            state = self._store.get(owner_id)
            if state is None:
                return NotificationResult(owner_id=owner_id, outcome=NotificationOutcome.SKIPPED_NOT_REGISTERED)

            if self._ledger.current_balance(owner_id) == Decimal(0):
                logger.info(f"Forced notification for owner {owner_id} skipped: no balance")
                return NotificationResult(owner_id=owner_id, outcome=NotificationOutcome.SKIPPED_NO_BALANCE)

            try:
                notification = self._emit(state, self._clock.now())
            except (LedgerError, NotificationDeliveryError) as e:
                logger.warning(f"Forced notification for owner {owner_id} failed: {e.message}")
                return NotificationResult(
                    owner_id=owner_id,
                    outcome=NotificationOutcome.FAILED,
                    error_message=e.message
                )
            return NotificationResult(owner_id=owner_id, outcome=NotificationOutcome.SENT, notification=notification)

    def sweep(self) -> SweepReport:
        """
        One pass over a snapshot of the registered owners. A failure for one
        owner is logged and reported; the remaining owners are still checked.
        """
        report = SweepReport(started_at=self._clock.now())
        owners = self._store.registered_owners()
        logger.info(f"Starting notification sweep over {len(owners)} registered owners.")

        for owner_id in owners:
            report.checked += 1
            try:
                result = self.check_owner(owner_id)
            except Exception as e:
                reason = getattr(e, "message", None) or f"{type(e).__name__}: {e}"
                logger.error(f"Notification check failed for owner {owner_id}: {reason}")
                result = NotificationResult(
                    owner_id=owner_id,
                    outcome=NotificationOutcome.FAILED,
                    error_message=reason
                )
            report.results.append(result)

        report.failures = [
            OwnerFailure(owner_id=r.owner_id, error_reason=r.error_message)
            for r in report.results if r.outcome == NotificationOutcome.FAILED
        ]
        logger.info(f"Finished notification sweep. Notified {len(report.notified_owner_ids)}, failed {len(report.failures)}.")
        return report

    def _emit(self, state: NotificationState, now: datetime) -> PnLNotification:
        status = self._valuation.get_status(state.owner_id)
        pnl_change = None
        if state.registration == RegistrationState.NOTIFIED:
            pnl_change = status.unrealized_profit - state.last_notified_pnl

        notification = PnLNotification(
            owner_id=state.owner_id,
            destination=state.destination,
            status=status,
            pnl_change=pnl_change,
            created_at=now
        )
        self._notifier.send(notification)
        self._store.mark_notified(state.owner_id, status.unrealized_profit, status.live_rate, now)
        logger.info(f"Notified owner {state.owner_id}: unrealized {status.unrealized_profit:.2f} at rate {status.live_rate}")
        return notification
