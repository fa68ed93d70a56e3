"""Refund percentage calculation.

The percentage is built in layers: a base that decays with the age of the
order, an optional custom base supplied by an admin, penalties for delivery
state and late requests, and loyalty bonuses. The result is clamped to the
policy bounds. Every layer is recorded as a breakdown term so the customer and
the admin see the same explanation.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cancellations.refund.model import CustomerInfo, Order, OrderStatus
from cancellations.refund.policy import DEFAULT_POLICY, RefundPolicy

_HOUR = 3600
_DAY = 24 * _HOUR


class CancellationTiming(Enum):
    EARLY = "EARLY"
    STANDARD = "STANDARD"
    LATE = "LATE"


class TermKind(Enum):
    BASE = "BASE"
    CUSTOM_BASE = "CUSTOM_BASE"
    PENALTY = "PENALTY"
    BONUS = "BONUS"
    CLAMP = "CLAMP"


@dataclass(frozen=True)
class BreakdownTerm:
    kind: TermKind
    amount: float
    reason: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "amount": self.amount, "reason": self.reason}


@dataclass(frozen=True)
class PercentageResult:
    percentage: float
    display_percentage: int
    breakdown: tuple[BreakdownTerm, ...]
    timing: CancellationTiming
    days_since_order: int
    past_estimated_delivery: bool

    @property
    def total_penalty(self) -> float:
        return sum(-t.amount for t in self.breakdown if t.kind == TermKind.PENALTY)

    @property
    def total_bonus(self) -> float:
        return sum(t.amount for t in self.breakdown if t.kind == TermKind.BONUS)


def _whole_days(since: datetime, now: datetime) -> int:
    return math.floor((now - since).total_seconds() / _DAY)


def _timing(hours: float, days: int, policy: RefundPolicy) -> CancellationTiming:
    if hours <= policy.base_percentages.early_window_hours:
        return CancellationTiming.EARLY
    if days <= policy.base_percentages.standard_window_days:
        return CancellationTiming.STANDARD
    return CancellationTiming.LATE


def _base_percentage(timing: CancellationTiming, policy: RefundPolicy) -> BreakdownTerm:
    rates = policy.base_percentages
    if timing == CancellationTiming.EARLY:
        return BreakdownTerm(TermKind.BASE, rates.early, "Early cancellation (within 24 hours)")
    if timing == CancellationTiming.STANDARD:
        return BreakdownTerm(TermKind.BASE, rates.standard, "Standard cancellation (within 7 days)")
    return BreakdownTerm(TermKind.BASE, rates.late, "Late cancellation (after 7 days)")


def _penalties(order: Order, now: datetime, days_since_order: int, policy: RefundPolicy) -> list[BreakdownTerm]:
    rates = policy.penalty_rates
    terms = []

    # Delivery penalties are mutually exclusive; a recorded delivery date wins
    # over the bare Delivered status.
    if order.actual_delivery_date is not None:
        days_since_delivery = _whole_days(order.actual_delivery_date, now)
        if days_since_delivery <= rates.week_window_days:
            terms.append(
                BreakdownTerm(TermKind.PENALTY, -rates.week_after_delivery, "Request within a week of delivery")
            )
        elif days_since_delivery <= rates.month_window_days:
            terms.append(
                BreakdownTerm(TermKind.PENALTY, -rates.month_after_delivery, "Request within a month of delivery")
            )
        else:
            terms.append(
                BreakdownTerm(
                    TermKind.PENALTY,
                    -rates.extended_after_delivery,
                    "Request after extended period post-delivery",
                )
            )
    elif order.order_status == OrderStatus.DELIVERED:
        terms.append(BreakdownTerm(TermKind.PENALTY, -rates.delivered_status, "Order already delivered"))

    if order.estimated_delivery_date is not None and now > order.estimated_delivery_date:
        terms.append(
            BreakdownTerm(TermKind.PENALTY, -rates.past_estimated_date, "Request made after estimated delivery date")
        )

    if days_since_order > rates.late_request_after_days:
        terms.append(BreakdownTerm(TermKind.PENALTY, -rates.late_request, "Late cancellation request"))

    return terms


def _bonuses(customer: CustomerInfo | None, policy: RefundPolicy) -> list[BreakdownTerm]:
    if customer is None:
        return []

    rates = policy.bonus_rates
    terms = []
    if customer.is_vip or customer.membership_tier in rates.vip_tiers:
        terms.append(BreakdownTerm(TermKind.BONUS, rates.vip, "VIP customer bonus"))
    if customer.order_count >= rates.regular_customer_min_orders:
        terms.append(BreakdownTerm(TermKind.BONUS, rates.regular_customer, "Regular customer bonus"))
    return terms


def compute_percentage(
    order: Order,
    now: datetime,
    custom_percentage: float | None = None,
    customer: CustomerInfo | None = None,
    policy: RefundPolicy = DEFAULT_POLICY,
) -> PercentageResult:
    """Compute the refund percentage for cancelling ``order`` at ``now``.

    ``custom_percentage`` replaces the time-based base (an explicit 0 counts);
    penalties, bonuses and clamping still apply on top of it. The returned
    ``percentage`` is unrounded and is what amount calculations must use.
    """
    hours_since_order = (now - order.order_date).total_seconds() / _HOUR
    days_since_order = math.floor(hours_since_order / 24)
    timing = _timing(hours_since_order, days_since_order, policy)

    if custom_percentage is not None:
        base = BreakdownTerm(TermKind.CUSTOM_BASE, float(custom_percentage), "Custom refund percentage")
    else:
        base = _base_percentage(timing, policy)

    terms = [base, *_penalties(order, now, days_since_order, policy), *_bonuses(customer, policy)]
    raw = sum(term.amount for term in terms)
    percentage = max(policy.min_percentage, min(raw, policy.max_percentage))
    if percentage != raw:
        bound = "minimum" if percentage > raw else "maximum"
        terms.append(BreakdownTerm(TermKind.CLAMP, percentage - raw, f"Adjusted to policy {bound}"))

    return PercentageResult(
        percentage=percentage,
        display_percentage=math.floor(percentage + 0.5),
        breakdown=tuple(terms),
        timing=timing,
        days_since_order=days_since_order,
        past_estimated_delivery=(
            order.estimated_delivery_date is not None and now > order.estimated_delivery_date
        ),
    )
