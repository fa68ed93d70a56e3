"""Fake notifier: records notifications in memory for test assertions."""

from uuid import uuid4

from cancellations.notifier.port import CustomerNotification, Notifier


class FakeNotifier(Notifier):
    def __init__(self):
        self.sent: list[CustomerNotification] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, notification: CustomerNotification) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        self.sent.append(notification)
        return {"message_id": f"notice-{uuid4().hex[:12]}", "status": "sent"}

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
