"""Carry out an approved cancellation once the decision is committed.

Cancels the items in the storefront and hands the frozen refund figures to
the refund executor. Either side failing is logged at error level; the
request stays APPROVED.
"""

import json

import structlog
from protean.utils.mixins import handle

from cancellations.domain import cancellations
from cancellations.orders import get_order_repository
from cancellations.refund_executor import get_refund_executor
from cancellations.refund_executor.port import RefundInstruction
from cancellations.request.events import CancellationApproved
from cancellations.request.request import CancellationRequest, CancellationType

logger = structlog.get_logger(__name__)


@cancellations.event_handler(part_of=CancellationRequest)
class ApprovedCancellationHandler:
    @handle(CancellationApproved)
    def on_cancellation_approved(self, event: CancellationApproved) -> None:
        self._cancel_in_storefront(event)
        self._hand_off_refund(event)

    def _cancel_in_storefront(self, event: CancellationApproved) -> None:
        orders = get_order_repository()
        try:
            if event.cancellation_type == CancellationType.FULL_ORDER.value:
                orders.cancel_order(str(event.order_id))
            else:
                orders.cancel_items(str(event.order_id), json.loads(event.items_to_cancel or "[]"))
        except Exception as exc:
            logger.error(
                "storefront_cancellation_failed",
                request_id=str(event.request_id),
                order_id=str(event.order_id),
                error=str(exc),
            )

    def _hand_off_refund(self, event: CancellationApproved) -> None:
        instruction = RefundInstruction(
            request_id=str(event.request_id),
            order_id=str(event.order_id),
            refund_amount=event.refund_amount,
            refund_percentage=event.refund_percentage,
        )
        try:
            receipt = get_refund_executor().execute(instruction)
        except Exception as exc:
            logger.error(
                "refund_instruction_failed",
                request_id=instruction.request_id,
                order_id=instruction.order_id,
                refund_amount=instruction.refund_amount,
                error=str(exc),
            )
            return

        if not receipt.accepted:
            logger.error(
                "refund_instruction_rejected",
                request_id=instruction.request_id,
                order_id=instruction.order_id,
                reason=receipt.failure_reason,
            )
