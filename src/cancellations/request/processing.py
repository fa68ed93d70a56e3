"""MarkRefundProcessed: the payments side confirms an approved refund was paid."""

from protean.fields import Identifier, Integer, String
from protean.utils.mixins import handle

from cancellations.clock import get_clock
from cancellations.domain import cancellations
from cancellations.request.request import CancellationRequest, CancellationStatus, RefundMethod
from cancellations.request.store import get_cancellation_store
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)


@cancellations.command(part_of="CancellationRequest")
class MarkRefundProcessed:
    request_id = Identifier(required=True)
    refund_reference = String(required=True, max_length=255)
    refund_method = String(max_length=50, default=RefundMethod.ORIGINAL_PAYMENT_METHOD.value)
    expected_version = Integer()  # Defaults to the current version


@cancellations.command_handler(part_of=CancellationRequest)
class MarkRefundProcessedHandler:
    @handle(MarkRefundProcessed)
    def mark_refund_processed(self, command):
        store = get_cancellation_store()
        now = get_clock().now()

        expected_version = command.expected_version
        if expected_version is None:
            expected_version = store.get_request(command.request_id).version

        request = store.update_status(
            command.request_id,
            CancellationStatus.PROCESSED,
            expected_version,
            lambda r: r.mark_refund_processed(
                refund_reference=command.refund_reference,
                refund_method=command.refund_method or RefundMethod.ORIGINAL_PAYMENT_METHOD.value,
                now=now,
            ),
        )
        logger.info(
            "refund_processed",
            request_id=str(request.id),
            order_id=str(request.order_id),
            refund_reference=command.refund_reference,
            refund_amount=request.pricing_snapshot.refund_amount,
        )
        return request.version
