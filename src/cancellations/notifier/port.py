"""Customer notification port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class NotificationKind(Enum):
    CANCELLATION_REQUESTED = "Cancellation_Requested"
    CANCELLATION_APPROVED = "Cancellation_Approved"
    CANCELLATION_REJECTED = "Cancellation_Rejected"
    REFUND_PROCESSED = "Refund_Processed"


@dataclass(frozen=True)
class CustomerNotification:
    kind: NotificationKind
    order_id: str
    customer_email: str
    refund_amount: float
    refund_percentage: float
    subject: str = ""
    body: str = ""


class Notifier(ABC):
    @abstractmethod
    def notify(self, notification: CustomerNotification) -> dict:
        """Deliver a notification.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
