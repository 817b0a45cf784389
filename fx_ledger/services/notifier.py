# fx_ledger/services/notifier.py

import logging
from typing import Protocol

from fx_ledger.core.models.notification import PnLNotification

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """
    Delivery port for P&L notifications. Implementations raise
    NotificationDeliveryError when the message could not be delivered.
    """
    def send(self, notification: PnLNotification) -> None:
        ...


class LoggingNotifier:
    """Default notifier: writes the notification to the application log."""

    def send(self, notification: PnLNotification) -> None:
        status = notification.status
        change = "" if notification.pnl_change is None else f", change {notification.pnl_change:+.2f}"
        logger.info(
            f"P&L for owner {notification.owner_id} -> {notification.destination}: "
            f"balance {status.balance:.2f}, rate {status.live_rate}, "
            f"value {status.current_value:.2f}, unrealized {status.unrealized_profit:+.2f}{change}"
        )

