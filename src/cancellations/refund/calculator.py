"""Refund amount calculation for full and partial cancellations.

Amounts are derived from resolved line totals and the unrounded refund
percentage. Rounding happens once per reported figure, half-up to the cent.
"""

from dataclasses import dataclass, field
from datetime import datetime

from protean.exceptions import ValidationError

from cancellations.refund.model import CustomerInfo, Order
from cancellations.refund.money import round2
from cancellations.refund.percentage import BreakdownTerm, CancellationTiming, compute_percentage
from cancellations.refund.policy import DEFAULT_POLICY, RefundPolicy
from cancellations.refund.pricing import resolve

FULL_ORDER = "FULL_ORDER"
PARTIAL_ITEMS = "PARTIAL_ITEMS"


@dataclass(frozen=True)
class FullRefund:
    items_total: float
    total_with_delivery: float
    refund_amount: float
    delivery_component: float
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ItemRefund:
    item_id: str
    line_total: float
    refund_amount: float


@dataclass(frozen=True)
class PartialRefund:
    items: tuple[ItemRefund, ...]
    total_item_value: float
    total_item_refund: float
    delivery_base: float
    delivery_component: float
    refund_amount: float
    active_count: int
    cancel_count: int
    reclassify_to_full: bool
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_effectively_full(self) -> bool:
        return self.reclassify_to_full


@dataclass(frozen=True)
class RefundQuote:
    """Everything a pricing snapshot needs, for either cancellation type."""

    cancellation_type: str
    items_to_cancel: tuple[str, ...]
    refund_percentage: float
    display_percentage: int
    refund_amount: float
    items_total: float
    delivery_refund_component: float
    retained_amount: float
    breakdown: tuple[BreakdownTerm, ...]
    warnings: tuple[str, ...]
    timing: CancellationTiming
    days_since_order: int
    past_estimated_delivery: bool
    computed_at: datetime


def compute_full_refund(order: Order, percentage: float) -> FullRefund:
    active = order.active_items
    if not active:
        raise ValidationError({"items": ["Order has no active items to cancel"]})

    warnings: list[str] = []
    line_totals = []
    for item in active:
        resolved = resolve(item)
        line_totals.append(resolved.line_total)
        warnings.extend(resolved.warnings)
    items_total = round2(sum(line_totals))

    if items_total <= 0 and order.total_amt > order.delivery_charge:
        items_total = round2(order.total_amt - order.delivery_charge)
        warnings.append(f"Order {order.id}: no priced items, using order total less delivery ({items_total})")

    total_with_delivery = round2(items_total + order.delivery_charge)
    return FullRefund(
        items_total=items_total,
        total_with_delivery=total_with_delivery,
        refund_amount=round2(total_with_delivery * percentage / 100),
        delivery_component=round2(order.delivery_charge * percentage / 100),
        warnings=tuple(warnings),
    )


def validate_items_to_cancel(order: Order, items_to_cancel) -> list[str]:
    """Check a partial selection and return the normalised item ids."""
    item_ids = [str(item_id) for item_id in items_to_cancel or []]
    if not item_ids:
        raise ValidationError({"items_to_cancel": ["Select at least one item to cancel"]})

    errors = []
    duplicates = sorted({item_id for item_id in item_ids if item_ids.count(item_id) > 1})
    if duplicates:
        errors.append(f"Items selected more than once: {', '.join(duplicates)}")

    for item_id in dict.fromkeys(item_ids):
        item = order.item(item_id)
        if item is None:
            errors.append(f"Item {item_id} is not part of order {order.id}")
        elif not item.is_active:
            errors.append(f"Item {item_id} is already cancelled")

    if errors:
        raise ValidationError({"items_to_cancel": errors})
    return item_ids


def compute_partial_refund(order: Order, items_to_cancel, percentage: float) -> PartialRefund:
    item_ids = validate_items_to_cancel(order, items_to_cancel)

    warnings: list[str] = []
    refunds = []
    for item_id in item_ids:
        resolved = resolve(order.item(item_id))
        warnings.extend(resolved.warnings)
        refunds.append(
            ItemRefund(
                item_id=item_id,
                line_total=resolved.line_total,
                refund_amount=round2(resolved.line_total * percentage / 100),
            )
        )

    total_item_value = round2(sum(r.line_total for r in refunds))
    total_item_refund = round2(sum(r.refund_amount for r in refunds))

    active_count = len(order.active_items)
    cancel_count = len(item_ids)
    effectively_full = cancel_count == active_count > 0

    if effectively_full:
        delivery_base = order.delivery_charge
    else:
        if order.sub_total_amt is not None:
            excl_delivery = order.sub_total_amt
        else:
            excl_delivery = order.total_amt - order.delivery_charge
        proportion = total_item_value / excl_delivery if excl_delivery > 0 else 0.0
        if proportion > 1:
            warnings.append(f"Order {order.id}: cancelled items exceed order subtotal, delivery share capped")
            proportion = 1.0
        delivery_base = order.delivery_charge * proportion

    delivery_component = round2(delivery_base * percentage / 100)
    return PartialRefund(
        items=tuple(refunds),
        total_item_value=total_item_value,
        total_item_refund=total_item_refund,
        delivery_base=delivery_base,
        delivery_component=delivery_component,
        refund_amount=round2(total_item_refund + delivery_component),
        active_count=active_count,
        cancel_count=cancel_count,
        reclassify_to_full=effectively_full,
        warnings=tuple(warnings),
    )


def quote_refund(
    order: Order,
    now: datetime,
    items_to_cancel=None,
    custom_percentage: float | None = None,
    customer: CustomerInfo | None = None,
    policy: RefundPolicy = DEFAULT_POLICY,
) -> RefundQuote:
    """Price a cancellation end to end.

    A partial selection covering every active item is priced, and reported,
    as a full-order cancellation.
    """
    result = compute_percentage(order, now, custom_percentage=custom_percentage, customer=customer, policy=policy)

    partial = None
    if items_to_cancel:
        partial = compute_partial_refund(order, items_to_cancel, result.percentage)
        if partial.reclassify_to_full:
            partial = None

    if partial is not None:
        cancellation_type = PARTIAL_ITEMS
        selected = tuple(r.item_id for r in partial.items)
        refund_amount = partial.refund_amount
        items_total = partial.total_item_value
        delivery_component = partial.delivery_component
        base_value = partial.total_item_value + partial.delivery_base
        warnings = partial.warnings
    else:
        full = compute_full_refund(order, result.percentage)
        cancellation_type = FULL_ORDER
        selected = ()
        refund_amount = full.refund_amount
        items_total = full.items_total
        delivery_component = full.delivery_component
        base_value = full.total_with_delivery
        warnings = full.warnings

    return RefundQuote(
        cancellation_type=cancellation_type,
        items_to_cancel=selected,
        refund_percentage=result.percentage,
        display_percentage=result.display_percentage,
        refund_amount=refund_amount,
        items_total=items_total,
        delivery_refund_component=delivery_component,
        retained_amount=round2(base_value - refund_amount),
        breakdown=result.breakdown,
        warnings=warnings,
        timing=result.timing,
        days_since_order=result.days_since_order,
        past_estimated_delivery=result.past_estimated_delivery,
        computed_at=now,
    )
