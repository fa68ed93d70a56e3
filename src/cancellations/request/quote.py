"""Which quote is authoritative for a request right now.

A PENDING request is re-priced on every read, so a customer who waits sees
the percentage decay. Once an admin has decided, the stored snapshot is
returned as-is and is never recomputed.
"""

from dataclasses import dataclass
from datetime import datetime

from protean.exceptions import ValidationError

from cancellations.refund.calculator import quote_refund
from cancellations.refund.model import Order
from cancellations.refund.policy import RefundPolicy, load_refund_policy
from cancellations.request.request import CancellationRequest, PricingSnapshot
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrentQuote:
    snapshot: PricingSnapshot
    is_live: bool


def current_quote(
    request: CancellationRequest,
    order: Order,
    now: datetime,
    policy: RefundPolicy | None = None,
) -> CurrentQuote:
    if not request.is_pending:
        return CurrentQuote(snapshot=request.pricing_snapshot, is_live=False)

    policy = policy or load_refund_policy()
    try:
        quote = quote_refund(
            order,
            now,
            items_to_cancel=request.item_ids or None,
            customer=request.customer_info,
            policy=policy,
        )
    except ValidationError as exc:
        # The order moved on underneath the request (items cancelled elsewhere)
        logger.warning(
            "live_quote_unavailable",
            request_id=str(request.id),
            order_id=str(request.order_id),
            errors=exc.messages,
        )
        return CurrentQuote(snapshot=request.pricing_snapshot, is_live=False)

    return CurrentQuote(snapshot=PricingSnapshot.from_quote(quote), is_live=True)
