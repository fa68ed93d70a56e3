"""CancellationRequest aggregate (CQRS): one customer's ask to cancel.

The request carries a pricing snapshot taken when it was submitted. While the
request is PENDING that snapshot is only indicative: anyone looking at the
request gets a live recomputation. The admin decision freezes the figures, and
from then on the snapshot is the only source of truth.

State Machine:
    PENDING → APPROVED | REJECTED
    APPROVED → PROCESSED
    REJECTED, PROCESSED → (terminal)
"""

import json
from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from cancellations.domain import cancellations
from cancellations.refund.calculator import RefundQuote
from cancellations.refund.model import CustomerInfo
from cancellations.request.events import (
    CancellationApproved,
    CancellationRejected,
    CancellationRequested,
    RefundProcessed,
)

MAX_ADDITIONAL_REASON_LENGTH = 500


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CancellationType(Enum):
    FULL_ORDER = "FULL_ORDER"
    PARTIAL_ITEMS = "PARTIAL_ITEMS"


class CancellationStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSED = "PROCESSED"


class RefundMethod(Enum):
    ORIGINAL_PAYMENT_METHOD = "ORIGINAL_PAYMENT_METHOD"
    BANK_TRANSFER = "BANK_TRANSFER"
    WALLET_CREDIT = "WALLET_CREDIT"


class DecisionKind(Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    CancellationStatus.PENDING: {CancellationStatus.APPROVED, CancellationStatus.REJECTED},
    CancellationStatus.APPROVED: {CancellationStatus.PROCESSED},
    CancellationStatus.REJECTED: set(),  # Terminal
    CancellationStatus.PROCESSED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@cancellations.value_object(part_of="CancellationRequest")
class PricingSnapshot:
    """A refund quote as it stood at ``computed_at``."""

    refund_percentage = Float(required=True)
    display_percentage = Integer()
    refund_amount = Float(required=True)
    items_total = Float(required=True)
    delivery_refund_component = Float(default=0.0)
    retained_amount = Float(default=0.0)
    timing = String(max_length=20)
    days_since_order = Integer()
    breakdown = Text()  # JSON: [{kind, amount, reason}]
    warnings = Text()  # JSON list of strings
    computed_at = DateTime(required=True)

    @invariant.post
    def refund_cannot_be_negative(self):
        if self.refund_amount is not None and self.refund_amount < 0:
            raise ValidationError({"refund_amount": ["Refund amount cannot be negative"]})

    @classmethod
    def from_quote(cls, quote: RefundQuote):
        return cls(
            refund_percentage=quote.refund_percentage,
            display_percentage=quote.display_percentage,
            refund_amount=quote.refund_amount,
            items_total=quote.items_total,
            delivery_refund_component=quote.delivery_refund_component,
            retained_amount=quote.retained_amount,
            timing=quote.timing.value,
            days_since_order=quote.days_since_order,
            breakdown=json.dumps([term.to_dict() for term in quote.breakdown]),
            warnings=json.dumps(list(quote.warnings)),
            computed_at=quote.computed_at,
        )


@cancellations.value_object(part_of="CancellationRequest")
class AdminDecision:
    decision = String(choices=DecisionKind, required=True)
    refund_percentage_override = Float()
    notes = Text()
    decided_by = String(required=True, max_length=255)
    decided_at = DateTime(required=True)

    @invariant.post
    def override_must_be_a_percentage(self):
        override = self.refund_percentage_override
        if override is not None and (override < 0 or override > 100):
            raise ValidationError({"refund_percentage_override": ["Override must be between 0 and 100"]})


@cancellations.value_object(part_of="CancellationRequest")
class RefundDetails:
    refund_reference = String(required=True, max_length=255)
    refund_method = String(choices=RefundMethod, required=True)
    processed_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@cancellations.aggregate
class CancellationRequest:
    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_email = String(max_length=255)

    cancellation_type = String(choices=CancellationType, required=True)
    items_to_cancel = Text()  # JSON list of item ids; empty for FULL_ORDER
    reason = String(required=True, max_length=100)
    additional_reason = Text()

    status = String(choices=CancellationStatus, default=CancellationStatus.PENDING.value)
    version = Integer(default=1)

    pricing_snapshot = ValueObject(PricingSnapshot)
    admin_decision = ValueObject(AdminDecision)
    refund_details = ValueObject(RefundDetails)

    # Customer attributes that earn bonuses, kept so every recomputation
    # uses the inputs the customer submitted with
    is_vip = Boolean(default=False)
    membership_tier = String(max_length=50)
    order_count = Integer(default=0)

    was_past_estimated_delivery = Boolean(default=False)

    created_at = DateTime()
    respond_by = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def additional_reason_within_limit(self):
        if self.additional_reason and len(self.additional_reason) > MAX_ADDITIONAL_REASON_LENGTH:
            raise ValidationError(
                {"additional_reason": [f"Additional reason cannot exceed {MAX_ADDITIONAL_REASON_LENGTH} characters"]}
            )

    @invariant.post
    def items_match_cancellation_type(self):
        if self.cancellation_type is None:
            return
        has_items = bool(self.item_ids)
        if self.cancellation_type == CancellationType.FULL_ORDER.value and has_items:
            raise ValidationError({"items_to_cancel": ["A full-order cancellation cannot list items"]})
        if self.cancellation_type == CancellationType.PARTIAL_ITEMS.value and not has_items:
            raise ValidationError({"items_to_cancel": ["A partial cancellation must list at least one item"]})

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def item_ids(self) -> list[str]:
        return json.loads(self.items_to_cancel) if self.items_to_cancel else []

    @property
    def customer_info(self) -> CustomerInfo:
        return CustomerInfo(
            is_vip=bool(self.is_vip),
            membership_tier=self.membership_tier,
            order_count=self.order_count or 0,
        )

    @property
    def refund_percentage_override(self) -> float | None:
        return self.admin_decision.refund_percentage_override if self.admin_decision else None

    @property
    def is_pending(self) -> bool:
        return self.status == CancellationStatus.PENDING.value

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        order_id,
        quote: RefundQuote,
        reason,
        now,
        response_time_hours=48,
        customer_id=None,
        customer_email=None,
        additional_reason=None,
        customer: CustomerInfo | None = None,
    ):
        """Open a PENDING request priced by ``quote``.

        The cancellation type comes from the quote, so a partial selection that
        covers every active item is stored as a full-order request.
        """
        customer = customer or CustomerInfo()
        respond_by = now + timedelta(hours=response_time_hours)

        request = cls(
            order_id=order_id,
            customer_id=customer_id,
            customer_email=customer_email,
            cancellation_type=quote.cancellation_type,
            items_to_cancel=json.dumps(list(quote.items_to_cancel)),
            reason=reason,
            additional_reason=additional_reason,
            status=CancellationStatus.PENDING.value,
            version=1,
            pricing_snapshot=PricingSnapshot.from_quote(quote),
            is_vip=customer.is_vip,
            membership_tier=customer.membership_tier,
            order_count=customer.order_count,
            was_past_estimated_delivery=quote.past_estimated_delivery,
            created_at=now,
            respond_by=respond_by,
            updated_at=now,
        )

        request.raise_(
            CancellationRequested(
                request_id=str(request.id),
                order_id=str(order_id),
                customer_id=str(customer_id) if customer_id else None,
                customer_email=customer_email,
                cancellation_type=quote.cancellation_type,
                items_to_cancel=request.items_to_cancel,
                reason=reason,
                additional_reason=additional_reason,
                refund_percentage=quote.refund_percentage,
                refund_amount=quote.refund_amount,
                was_past_estimated_delivery=quote.past_estimated_delivery,
                respond_by=respond_by,
                requested_at=now,
            )
        )
        return request

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = CancellationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def approve(self, quote: RefundQuote, decided_by, now, notes=None, refund_percentage_override=None):
        """Approve and freeze ``quote`` as the authoritative refund."""
        self._assert_can_transition(CancellationStatus.APPROVED)

        self.pricing_snapshot = PricingSnapshot.from_quote(quote)
        self.admin_decision = AdminDecision(
            decision=DecisionKind.APPROVE.value,
            refund_percentage_override=refund_percentage_override,
            notes=notes,
            decided_by=decided_by,
            decided_at=now,
        )
        self.status = CancellationStatus.APPROVED.value
        self.version = (self.version or 1) + 1
        self.updated_at = now

        self.raise_(
            CancellationApproved(
                request_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                customer_email=self.customer_email,
                cancellation_type=self.cancellation_type,
                items_to_cancel=self.items_to_cancel,
                refund_percentage=quote.refund_percentage,
                refund_amount=quote.refund_amount,
                refund_percentage_override=refund_percentage_override,
                decided_by=decided_by,
                version=self.version,
                approved_at=now,
            )
        )

    def reject(self, decided_by, now, notes=None):
        """Reject the request. The stored snapshot is left as it was."""
        self._assert_can_transition(CancellationStatus.REJECTED)

        self.admin_decision = AdminDecision(
            decision=DecisionKind.REJECT.value,
            notes=notes,
            decided_by=decided_by,
            decided_at=now,
        )
        self.status = CancellationStatus.REJECTED.value
        self.version = (self.version or 1) + 1
        self.updated_at = now

        self.raise_(
            CancellationRejected(
                request_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                customer_email=self.customer_email,
                notes=notes,
                decided_by=decided_by,
                version=self.version,
                rejected_at=now,
            )
        )

    def mark_refund_processed(self, refund_reference, refund_method, now):
        """Record that the approved refund was paid out."""
        self._assert_can_transition(CancellationStatus.PROCESSED)

        self.refund_details = RefundDetails(
            refund_reference=refund_reference,
            refund_method=refund_method,
            processed_at=now,
        )
        self.status = CancellationStatus.PROCESSED.value
        self.version = (self.version or 1) + 1
        self.updated_at = now

        self.raise_(
            RefundProcessed(
                request_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                customer_email=self.customer_email,
                refund_amount=self.pricing_snapshot.refund_amount,
                refund_percentage=self.pricing_snapshot.refund_percentage,
                refund_reference=refund_reference,
                refund_method=refund_method,
                processed_at=now,
            )
        )
