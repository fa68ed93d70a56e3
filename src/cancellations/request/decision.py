"""ApproveCancellation / RejectCancellation: an admin decides a request.

Both commands carry the version the admin was looking at. The store applies
the decision only if nobody else decided first.

On approval the refund is priced one last time at the decision time, with the
admin's override (if any) standing in for the time-based base percentage,
and frozen. Once the decision is committed, ``ApprovedCancellationHandler``
cancels the items in the storefront and hands the figures to the refund
executor.
"""

from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.mixins import handle

from cancellations.clock import get_clock
from cancellations.domain import cancellations
from cancellations.orders import get_order_repository
from cancellations.refund.calculator import quote_refund
from cancellations.refund.policy import load_refund_policy
from cancellations.request.request import CancellationRequest, CancellationStatus
from cancellations.request.store import get_cancellation_store
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)


@cancellations.command(part_of="CancellationRequest")
class ApproveCancellation:
    request_id = Identifier(required=True)
    expected_version = Integer(required=True)
    decided_by = String(required=True, max_length=255)
    refund_percentage_override = Float(min_value=0, max_value=100)
    notes = Text()


@cancellations.command(part_of="CancellationRequest")
class RejectCancellation:
    request_id = Identifier(required=True)
    expected_version = Integer(required=True)
    decided_by = String(required=True, max_length=255)
    notes = Text()


@cancellations.command_handler(part_of=CancellationRequest)
class CancellationDecisionHandler:
    @handle(ApproveCancellation)
    def approve_cancellation(self, command):
        store = get_cancellation_store()
        orders = get_order_repository()
        policy = load_refund_policy()
        now = get_clock().now()

        order = orders.get_order(store.get_request(command.request_id).order_id)

        def approve(request):
            quote = quote_refund(
                order,
                now,
                items_to_cancel=request.item_ids or None,
                custom_percentage=command.refund_percentage_override,
                customer=request.customer_info,
                policy=policy,
            )
            request.approve(
                quote,
                decided_by=command.decided_by,
                now=now,
                notes=command.notes,
                refund_percentage_override=command.refund_percentage_override,
            )

        request = store.update_status(
            command.request_id,
            CancellationStatus.APPROVED,
            command.expected_version,
            approve,
        )
        snapshot = request.pricing_snapshot

        logger.info(
            "cancellation_approved",
            request_id=str(request.id),
            order_id=str(request.order_id),
            refund_percentage=snapshot.refund_percentage,
            refund_amount=snapshot.refund_amount,
            override=command.refund_percentage_override,
            version=request.version,
        )
        return request.version

    @handle(RejectCancellation)
    def reject_cancellation(self, command):
        store = get_cancellation_store()
        now = get_clock().now()

        request = store.update_status(
            command.request_id,
            CancellationStatus.REJECTED,
            command.expected_version,
            lambda r: r.reject(decided_by=command.decided_by, now=now, notes=command.notes),
        )
        logger.info(
            "cancellation_rejected",
            request_id=str(request.id),
            order_id=str(request.order_id),
            version=request.version,
        )
        return request.version
