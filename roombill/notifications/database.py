import logging

from roombill.models.notification import BillNotification, Notification, NotificationType
from roombill.money import format_money
from roombill.notifications.base import BillNotifier
from roombill.repositories.base import NotificationRepository

logger = logging.getLogger(__name__)


def build_bill_notification(event: BillNotification) -> Notification:
    due = f", due {event.due_date.strftime('%d/%m/%Y')}" if event.due_date else ""
    landlord = f" from {event.landlord_name}" if event.landlord_name else ""
    return Notification(
        user_id=event.tenant_id,
        notification_type=NotificationType.BILL,
        title=f"New bill for {event.month:02d}/{event.year}",
        message=(
            f"Your bill for {event.room_name}{landlord} is "
            f"{format_money(event.amount, event.currency)}{due}."
        ),
        data=event.model_dump(mode="json"),
    )


class DatabaseBillNotifier(BillNotifier):
    """Stores the notification in the ``notifications`` table for the tenant's inbox."""

    def __init__(self, repo: NotificationRepository) -> None:
        self.repo = repo

    def notify_bill(self, event: BillNotification) -> None:
        notification = self.repo.create(build_bill_notification(event))
        logger.info(
            "Bill notification stored: uuid=%s tenant=%s bill=%s",
            notification.uuid,
            event.tenant_id,
            event.bill_id,
        )
