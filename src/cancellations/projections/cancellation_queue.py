"""CancellationQueue: the admin review list, filterable by status.

Rows stay after a decision so decided requests can be browsed too. For
pending rows the refund figures are those quoted at submission; the live
figure comes from the request itself.
"""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from cancellations.domain import cancellations
from cancellations.request.events import (
    CancellationApproved,
    CancellationRejected,
    CancellationRequested,
    RefundProcessed,
)
from cancellations.request.request import CancellationRequest


@cancellations.projection
class CancellationQueue:
    request_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String()
    cancellation_type = String(required=True)
    items_to_cancel = Text()
    reason = String(required=True)
    status = String(required=True)
    refund_percentage = Float()
    refund_amount = Float()
    version = Integer(default=1)
    requested_at = DateTime()
    respond_by = DateTime()
    decided_by = String()
    decided_at = DateTime()
    refund_reference = String()
    processed_at = DateTime()


@cancellations.projector(projector_for=CancellationQueue, aggregates=[CancellationRequest])
class CancellationQueueProjector:
    @on(CancellationRequested)
    def on_cancellation_requested(self, event):
        current_domain.repository_for(CancellationQueue).add(
            CancellationQueue(
                request_id=event.request_id,
                order_id=event.order_id,
                customer_id=event.customer_id,
                customer_email=event.customer_email,
                cancellation_type=event.cancellation_type,
                items_to_cancel=event.items_to_cancel,
                reason=event.reason,
                status="PENDING",
                refund_percentage=event.refund_percentage,
                refund_amount=event.refund_amount,
                version=1,
                requested_at=event.requested_at,
                respond_by=event.respond_by,
            )
        )

    @on(CancellationApproved)
    def on_cancellation_approved(self, event):
        repo = current_domain.repository_for(CancellationQueue)
        row = repo.get(event.request_id)
        row.status = "APPROVED"
        row.refund_percentage = event.refund_percentage
        row.refund_amount = event.refund_amount
        row.version = event.version
        row.decided_by = event.decided_by
        row.decided_at = event.approved_at
        repo.add(row)

    @on(CancellationRejected)
    def on_cancellation_rejected(self, event):
        repo = current_domain.repository_for(CancellationQueue)
        row = repo.get(event.request_id)
        row.status = "REJECTED"
        row.version = event.version
        row.decided_by = event.decided_by
        row.decided_at = event.rejected_at
        repo.add(row)

    @on(RefundProcessed)
    def on_refund_processed(self, event):
        repo = current_domain.repository_for(CancellationQueue)
        row = repo.get(event.request_id)
        row.status = "PROCESSED"
        row.version = (row.version or 1) + 1
        row.refund_reference = event.refund_reference
        row.processed_at = event.processed_at
        repo.add(row)
