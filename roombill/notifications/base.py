from abc import ABC, abstractmethod

from roombill.models.notification import BillNotification


class BillNotifier(ABC):
    @abstractmethod
    def notify_bill(self, event: BillNotification) -> None:
        """Tell the tenant a bill is ready to pay."""
        ...
