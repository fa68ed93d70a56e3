"""Domain events for the CancellationRequest aggregate.

Amounts carried on approval are the frozen figures; amounts carried on
submission are the quote at submission time and may change until a decision.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from cancellations.domain import cancellations


@cancellations.event(part_of="CancellationRequest")
class CancellationRequested:
    """A customer asked to cancel an order or some of its items."""

    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String()
    cancellation_type = String(required=True)
    items_to_cancel = Text()  # JSON list of item ids
    reason = String(required=True)
    additional_reason = Text()
    refund_percentage = Float(required=True)
    refund_amount = Float(required=True)
    was_past_estimated_delivery = Boolean(default=False)
    respond_by = DateTime(required=True)
    requested_at = DateTime(required=True)


@cancellations.event(part_of="CancellationRequest")
class CancellationApproved:
    """An admin approved the request; the refund figures are now frozen."""

    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String()
    cancellation_type = String(required=True)
    items_to_cancel = Text()
    refund_percentage = Float(required=True)
    refund_amount = Float(required=True)
    refund_percentage_override = Float()
    decided_by = String(required=True)
    version = Integer(required=True)
    approved_at = DateTime(required=True)


@cancellations.event(part_of="CancellationRequest")
class CancellationRejected:
    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String()
    notes = Text()
    decided_by = String(required=True)
    version = Integer(required=True)
    rejected_at = DateTime(required=True)


@cancellations.event(part_of="CancellationRequest")
class RefundProcessed:
    """The payments side confirmed the refund was paid out."""

    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String()
    refund_amount = Float(required=True)
    refund_percentage = Float(required=True)
    refund_reference = String(required=True)
    refund_method = String(required=True)
    processed_at = DateTime(required=True)
