import logging

from roombill.notifications.base import BillNotifier
from roombill.settings import settings

logger = logging.getLogger(__name__)


def get_notifier() -> BillNotifier:
    backend = settings.notification_backend

    if backend == "database":
        from roombill.notifications.database import DatabaseBillNotifier
        from roombill.repositories.factory import get_notification_repository

        logger.info("Using notification backend: database")
        return DatabaseBillNotifier(get_notification_repository())

    if backend == "log":
        from roombill.notifications.log import LogBillNotifier

        logger.info("Using notification backend: log")
        return LogBillNotifier()

    raise ValueError(f"Unsupported notification backend: {backend}")
