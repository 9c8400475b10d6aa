import logging

from roombill.models.notification import BillNotification
from roombill.notifications.base import BillNotifier

logger = logging.getLogger(__name__)


class LogBillNotifier(BillNotifier):
    """Notifier that only writes the event to the log. Useful for dry runs."""

    def notify_bill(self, event: BillNotification) -> None:
        logger.info(
            "Bill ready: bill=%s tenant=%s period=%02d/%d amount=%d %s",
            event.bill_id,
            event.tenant_id,
            event.month,
            event.year,
            event.amount,
            event.currency,
        )
