"""Customer notifications for the cancellation lifecycle.

Reacts to CancellationRequest events and hands a rendered message to the
notifier. Delivery failures are logged; they never undo a decision.
"""

import structlog
from protean.utils.mixins import handle

from cancellations.domain import cancellations
from cancellations.notifier import get_notifier
from cancellations.notifier.port import CustomerNotification, NotificationKind
from cancellations.notifier.templates import render
from cancellations.request.events import (
    CancellationApproved,
    CancellationRejected,
    CancellationRequested,
    RefundProcessed,
)
from cancellations.request.request import CancellationRequest

logger = structlog.get_logger(__name__)


def _send(kind: NotificationKind, event, refund_amount: float, refund_percentage: float, **extra) -> None:
    if not event.customer_email:
        logger.info(
            "Cancellation event missing customer_email, skipping notification",
            request_id=str(event.request_id),
            kind=kind.value,
        )
        return

    content = render(
        kind,
        {
            "order_id": str(event.order_id),
            "refund_amount": refund_amount,
            "refund_percentage": refund_percentage,
            **extra,
        },
    )
    result = get_notifier().notify(
        CustomerNotification(
            kind=kind,
            order_id=str(event.order_id),
            customer_email=event.customer_email,
            refund_amount=refund_amount,
            refund_percentage=refund_percentage,
            subject=content["subject"],
            body=content["body"],
        )
    )
    if result.get("status") != "sent":
        logger.warning(
            "cancellation_notification_failed",
            request_id=str(event.request_id),
            kind=kind.value,
            error=result.get("error"),
        )


@cancellations.event_handler(part_of=CancellationRequest)
class CustomerNotificationHandler:
    @handle(CancellationRequested)
    def on_cancellation_requested(self, event: CancellationRequested) -> None:
        _send(
            NotificationKind.CANCELLATION_REQUESTED,
            event,
            event.refund_amount,
            event.refund_percentage,
            response_time_hours=round((event.respond_by - event.requested_at).total_seconds() / 3600),
        )

    @handle(CancellationApproved)
    def on_cancellation_approved(self, event: CancellationApproved) -> None:
        _send(NotificationKind.CANCELLATION_APPROVED, event, event.refund_amount, event.refund_percentage)

    @handle(CancellationRejected)
    def on_cancellation_rejected(self, event: CancellationRejected) -> None:
        _send(NotificationKind.CANCELLATION_REJECTED, event, 0.0, 0.0, notes=event.notes)

    @handle(RefundProcessed)
    def on_refund_processed(self, event: RefundProcessed) -> None:
        _send(
            NotificationKind.REFUND_PROCESSED,
            event,
            event.refund_amount,
            event.refund_percentage,
            refund_reference=event.refund_reference,
        )
