"""SubmitCancellation: a customer asks to cancel an order or some items.

Cross-request rules (one pending request per order) are enforced here since
they need a repository query. The request is priced against the current
order and clock, and stored PENDING.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.mixins import handle

from cancellations.clock import get_clock
from cancellations.domain import cancellations
from cancellations.orders import get_order_repository
from cancellations.refund.calculator import quote_refund
from cancellations.refund.model import CustomerInfo
from cancellations.refund.policy import load_refund_policy
from cancellations.request.request import CancellationRequest, CancellationType
from cancellations.request.store import get_cancellation_store
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)


@cancellations.command(part_of="CancellationRequest")
class SubmitCancellation:
    order_id = Identifier(required=True)
    cancellation_type = String(required=True, max_length=20)
    items_to_cancel = Text()  # JSON array of item ids
    reason = String(required=True, max_length=100)
    additional_reason = Text()
    customer_id = Identifier()
    customer_email = String(max_length=255)
    is_vip = Boolean(default=False)
    membership_tier = String(max_length=50)
    order_count = Integer(default=0)


@cancellations.command_handler(part_of=CancellationRequest)
class SubmitCancellationHandler:
    @handle(SubmitCancellation)
    def submit_cancellation(self, command):
        policy = load_refund_policy()
        store = get_cancellation_store()

        if command.reason not in policy.allowed_reasons:
            raise ValidationError({"reason": [f"'{command.reason}' is not an accepted cancellation reason"]})

        try:
            cancellation_type = CancellationType(command.cancellation_type)
        except ValueError:
            raise ValidationError(
                {"cancellation_type": [f"Unknown cancellation type: {command.cancellation_type}"]}
            ) from None

        order = get_order_repository().get_order(command.order_id)
        if order.order_status.value in policy.non_cancellable_statuses:
            raise ValidationError({"order": [f"Orders in status {order.order_status.value} cannot be cancelled"]})

        if store.pending_for_order(order.id):
            raise ValidationError({"order": ["A cancellation request is already pending for this order"]})

        items_to_cancel = None
        if cancellation_type == CancellationType.PARTIAL_ITEMS:
            items_to_cancel = json.loads(command.items_to_cancel) if command.items_to_cancel else []
            if not items_to_cancel:
                raise ValidationError({"items_to_cancel": ["Select at least one item to cancel"]})

        customer = CustomerInfo(
            is_vip=bool(command.is_vip),
            membership_tier=command.membership_tier,
            order_count=command.order_count or 0,
        )
        now = get_clock().now()
        quote = quote_refund(order, now, items_to_cancel=items_to_cancel, customer=customer, policy=policy)

        if quote.warnings:
            logger.warning("refund_quote_fallbacks", order_id=order.id, warnings=list(quote.warnings))
        if cancellation_type.value != quote.cancellation_type:
            logger.info(
                "partial_cancellation_reclassified",
                order_id=order.id,
                items_to_cancel=items_to_cancel,
            )

        request = CancellationRequest.submit(
            order_id=order.id,
            quote=quote,
            reason=command.reason,
            now=now,
            response_time_hours=policy.response_time_hours,
            customer_id=command.customer_id or order.customer_id,
            customer_email=command.customer_email or order.customer_email,
            additional_reason=command.additional_reason,
            customer=customer,
        )
        store.create_request(request)

        logger.info(
            "cancellation_requested",
            request_id=str(request.id),
            order_id=order.id,
            cancellation_type=quote.cancellation_type,
            refund_percentage=quote.refund_percentage,
            refund_amount=quote.refund_amount,
        )
        return str(request.id)
