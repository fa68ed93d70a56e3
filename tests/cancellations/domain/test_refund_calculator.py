"""Tests for full and partial refund amounts and delivery allocation."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from cancellations.refund.calculator import (
    FULL_ORDER,
    PARTIAL_ITEMS,
    compute_full_refund,
    compute_partial_refund,
    quote_refund,
)
from cancellations.refund.model import ItemStatus, ItemType, Order, OrderItem, PriceSources

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=UTC)


def _item(item_id, price, quantity=1, status=ItemStatus.ACTIVE):
    return OrderItem(
        id=item_id,
        item_type=ItemType.PRODUCT,
        quantity=quantity,
        prices=PriceSources(original_price=price),
        status=status,
    )


def _order(items=None, total_amt=1000.0, delivery_charge=100.0, sub_total_amt=900.0, hours_ago=10):
    return Order(
        id="ORD-1",
        order_date=NOW - timedelta(hours=hours_ago),
        items=tuple(items if items is not None else [_item("a", 600), _item("b", 300)]),
        total_amt=total_amt,
        delivery_charge=delivery_charge,
        sub_total_amt=sub_total_amt,
    )


class TestFullRefund:
    def test_worked_example_full_order(self):
        refund = compute_full_refund(_order(), 90)
        assert refund.items_total == 900
        assert refund.total_with_delivery == 1000
        assert refund.refund_amount == 900.00
        assert refund.delivery_component == 90.00

    def test_cancelled_items_are_excluded(self):
        order = _order(items=[_item("a", 600), _item("b", 300, status=ItemStatus.CANCELLED)])
        refund = compute_full_refund(order, 100)
        assert refund.items_total == 600
        assert refund.refund_amount == 700

    def test_rounds_half_up(self):
        order = _order(items=[_item("a", 0.25)], delivery_charge=0.0)
        assert compute_full_refund(order, 50).refund_amount == 0.13

    def test_no_active_items_is_rejected(self):
        order = _order(items=[_item("a", 600, status=ItemStatus.CANCELLED)])
        with pytest.raises(ValidationError) as exc:
            compute_full_refund(order, 90)
        assert "items" in exc.value.messages

    def test_unpriced_items_fall_back_to_order_total(self):
        unpriced = OrderItem(id="a", item_type=ItemType.PRODUCT, quantity=1)
        refund = compute_full_refund(_order(items=[unpriced]), 100)
        assert refund.items_total == 900
        assert refund.refund_amount == 1000
        assert any("order total" in w for w in refund.warnings)


class TestPartialRefund:
    def test_worked_example_partial(self):
        refund = compute_partial_refund(_order(), ["a"], 90)
        assert refund.total_item_value == 600
        assert refund.total_item_refund == 540.00
        assert refund.delivery_component == 60.00
        assert refund.refund_amount == 600.00
        assert refund.reclassify_to_full is False
        assert refund.active_count == 2
        assert refund.cancel_count == 1

    def test_reports_each_item(self):
        order = _order(items=[_item("a", 100), _item("b", 200), _item("c", 300)], total_amt=700, sub_total_amt=600)
        refund = compute_partial_refund(order, ["a", "c"], 50)
        assert [(i.item_id, i.refund_amount) for i in refund.items] == [("a", 50.0), ("c", 150.0)]

    def test_all_active_items_is_effectively_full(self):
        refund = compute_partial_refund(_order(), ["a", "b"], 90)
        assert refund.reclassify_to_full is True
        assert refund.delivery_base == 100
        assert refund.refund_amount == 900.00

    def test_subtotal_missing_uses_total_less_delivery(self):
        refund = compute_partial_refund(_order(sub_total_amt=None), ["b"], 100)
        # 300 / (1000 - 100) of the delivery charge
        assert refund.delivery_component == 33.33

    def test_no_subtotal_basis_means_no_delivery_refund(self):
        refund = compute_partial_refund(_order(sub_total_amt=0.0), ["b"], 100)
        assert refund.delivery_component == 0
        assert refund.refund_amount == 300

    def test_delivery_share_is_capped_at_whole_charge(self):
        refund = compute_partial_refund(_order(sub_total_amt=200.0), ["a"], 100)
        assert refund.delivery_base == 100
        assert refund.warnings

    @pytest.mark.parametrize(
        "selection, message",
        [
            ([], "at least one"),
            (["a", "a"], "more than once"),
            (["zzz"], "not part of order"),
        ],
    )
    def test_invalid_selection(self, selection, message):
        with pytest.raises(ValidationError) as exc:
            compute_partial_refund(_order(), selection, 90)
        assert any(message in m for m in exc.value.messages["items_to_cancel"])

    def test_already_cancelled_item_cannot_be_selected(self):
        order = _order(items=[_item("a", 600), _item("b", 300, status=ItemStatus.CANCELLED)])
        with pytest.raises(ValidationError) as exc:
            compute_partial_refund(order, ["b"], 90)
        assert "already cancelled" in exc.value.messages["items_to_cancel"][0]


class TestAllocationProperties:
    def test_item_by_item_cancellations_add_up_to_full_refund(self):
        items = [_item("a", 333.33), _item("b", 166.67), _item("c", 250)]
        order = _order(items=items, total_amt=799.99, delivery_charge=49.99, sub_total_amt=750.0)
        full = compute_full_refund(order, 72.5)

        partial_total = 0.0
        delivery_total = 0.0
        for item_id in ("a", "b", "c"):
            refund = compute_partial_refund(order, [item_id], 72.5)
            partial_total += refund.refund_amount
            delivery_total += refund.delivery_base

        assert partial_total == pytest.approx(full.refund_amount, abs=0.01 * len(items))
        assert delivery_total == pytest.approx(order.delivery_charge)

    def test_single_partial_matching_full_within_a_cent(self):
        order = _order(items=[_item("only", 799.99)], total_amt=849.98, delivery_charge=49.99, sub_total_amt=799.99)
        full = compute_full_refund(order, 66.6)
        partial = compute_partial_refund(order, ["only"], 66.6)
        assert partial.refund_amount == pytest.approx(full.refund_amount, abs=0.011)


class TestQuote:
    def test_full_order_quote(self):
        quote = quote_refund(_order(), NOW)
        assert quote.cancellation_type == FULL_ORDER
        assert quote.refund_percentage == 90
        assert quote.refund_amount == 900.00
        assert quote.retained_amount == 100.00
        assert quote.items_to_cancel == ()
        assert quote.computed_at == NOW

    def test_partial_quote(self):
        quote = quote_refund(_order(), NOW, items_to_cancel=["a"])
        assert quote.cancellation_type == PARTIAL_ITEMS
        assert quote.items_to_cancel == ("a",)
        assert quote.refund_amount == 600.00
        assert quote.delivery_refund_component == 60.00
        assert quote.retained_amount == pytest.approx(66.67, abs=0.01)

    def test_partial_covering_everything_is_reclassified(self):
        quote = quote_refund(_order(), NOW, items_to_cancel=["b", "a"])
        assert quote.cancellation_type == FULL_ORDER
        assert quote.items_to_cancel == ()
        assert quote.refund_amount == 900.00

    def test_custom_percentage_flows_into_amounts(self):
        quote = quote_refund(_order(), NOW, custom_percentage=50)
        assert quote.refund_amount == 500.00
