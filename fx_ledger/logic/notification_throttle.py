# fx_ledger/logic/notification_throttle.py

import logging
import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.enums.registration_state import RegistrationState
from fx_ledger.core.models.notification import NotificationState

logger = logging.getLogger(__name__)


class NotificationStateStore:
    """
    Explicit, process-lifetime home of every owner's throttle state.

    An owner is registered (IDLE or NOTIFIED) while it has an entry, and
    UNREGISTERED otherwise. States are replaced, never mutated in place, so
    readers always see a whole record.
    """
    def __init__(self):
        self._states: Dict[int, NotificationState] = {}
        self._lock = threading.Lock()

    def register(self, owner_id: int, destination: str) -> NotificationState:
        """Registers the owner as IDLE with the never-notified sentinel. No-op when already registered."""
        with self._lock:
            existing = self._states.get(owner_id)
            if existing is not None:
                return existing
            state = NotificationState(owner_id=owner_id, destination=destination)
            self._states[owner_id] = state
        logger.info(f"Registered owner {owner_id} (destination {destination}) for P&L notifications")
        return state

    def unregister(self, owner_id: int) -> bool:
        with self._lock:
            removed = self._states.pop(owner_id, None) is not None
        if removed:
            logger.info(f"Unregistered owner {owner_id} from P&L notifications")
        return removed

    def get(self, owner_id: int) -> Optional[NotificationState]:
        with self._lock:
            return self._states.get(owner_id)

    def registration_of(self, owner_id: int) -> RegistrationState:
        state = self.get(owner_id)
        return state.registration if state is not None else RegistrationState.UNREGISTERED

    def registered_owners(self) -> List[int]:
        with self._lock:
            return list(self._states.keys())

    def mark_notified(self, owner_id: int, pnl: Decimal, rate: Decimal, when: datetime) -> Optional[NotificationState]:
        """
        Moves a registered owner to NOTIFIED. Returns None if the owner was
        unregistered while its notification was being delivered.
        """
        with self._lock:
            current = self._states.get(owner_id)
            if current is None:
                return None
            updated = current.model_copy(update={
                "registration": RegistrationState.NOTIFIED,
                "last_notified_pnl": pnl,
                "last_notified_rate": rate,
                "last_notification_time": when,
            })
            self._states[owner_id] = updated
            return updated


class NotificationThrottle:
    """
    Decides whether a registered owner is due for a P&L notification.
    """
    def __init__(self, min_interval: timedelta):
        self.min_interval = min_interval

    def skip_reason(self, state: NotificationState, balance: Decimal, now: datetime) -> Optional[NotificationOutcome]:
        """
        Returns why the owner must be skipped, or None when a notification is due.
        An empty balance wins over the interval check.
        """
        if balance == Decimal(0):
            logger.debug(f"    Owner {state.owner_id} has no balance, skipping")
            return NotificationOutcome.SKIPPED_NO_BALANCE

        elapsed = now - state.last_notification_time
        logger.debug(f"    Hours since last notification for owner {state.owner_id}: {elapsed.total_seconds() / 3600:.1f}")
        if elapsed < self.min_interval:
            logger.debug(f"    Too soon to notify owner {state.owner_id} (need {self.min_interval})")
            return NotificationOutcome.SKIPPED_TOO_SOON

        return None
