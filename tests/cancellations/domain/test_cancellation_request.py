"""Tests for the CancellationRequest aggregate: submission, decisions and the state machine."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from cancellations.refund.calculator import quote_refund
from cancellations.refund.model import CustomerInfo, Order
from cancellations.request.events import (
    CancellationApproved,
    CancellationRejected,
    CancellationRequested,
    RefundProcessed,
)
from cancellations.request.request import (
    AdminDecision,
    CancellationRequest,
    CancellationStatus,
    CancellationType,
    DecisionKind,
    RefundMethod,
)

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=UTC)


def _order():
    return Order.from_mapping(
        {
            "id": "ORD-5",
            "order_date": NOW - timedelta(hours=10),
            "total_amt": 1000.0,
            "sub_total_amt": 900.0,
            "delivery_charge": 100.0,
            "items": [
                {"id": "a", "quantity": 1, "original_price": 600.0},
                {"id": "b", "quantity": 1, "original_price": 300.0},
            ],
        }
    )


def _submit(items_to_cancel=None, **overrides):
    quote = quote_refund(_order(), NOW, items_to_cancel=items_to_cancel)
    defaults = {
        "order_id": "ORD-5",
        "quote": quote,
        "reason": "Changed mind",
        "now": NOW,
        "customer_email": "asha@example.com",
    }
    defaults.update(overrides)
    return CancellationRequest.submit(**defaults)


def _request_at_state(target_status):
    request = _submit()
    request._events.clear()

    if target_status == CancellationStatus.PENDING:
        return request

    if target_status == CancellationStatus.REJECTED:
        request.reject(decided_by="admin-1", now=NOW)
        request._events.clear()
        return request

    request.approve(quote_refund(_order(), NOW), decided_by="admin-1", now=NOW)
    request._events.clear()
    if target_status == CancellationStatus.APPROVED:
        return request

    request.mark_refund_processed("RF-1", RefundMethod.ORIGINAL_PAYMENT_METHOD.value, NOW)
    request._events.clear()
    return request


class TestSubmit:
    def test_full_order_request(self):
        request = _submit()
        assert request.status == CancellationStatus.PENDING.value
        assert request.version == 1
        assert request.cancellation_type == CancellationType.FULL_ORDER.value
        assert request.item_ids == []
        assert request.pricing_snapshot.refund_amount == 900.00
        assert request.pricing_snapshot.refund_percentage == 90
        assert request.respond_by == NOW + timedelta(hours=48)

    def test_partial_request_keeps_selection(self):
        request = _submit(items_to_cancel=["a"])
        assert request.cancellation_type == CancellationType.PARTIAL_ITEMS.value
        assert request.item_ids == ["a"]
        assert request.pricing_snapshot.delivery_refund_component == 60.00

    def test_partial_covering_everything_is_stored_as_full(self):
        request = _submit(items_to_cancel=["a", "b"])
        assert request.cancellation_type == CancellationType.FULL_ORDER.value

    def test_snapshot_keeps_breakdown_as_json(self):
        breakdown = json.loads(_submit().pricing_snapshot.breakdown)
        assert breakdown[0]["kind"] == "BASE"
        assert breakdown[0]["amount"] == 90

    def test_customer_attributes_are_kept(self):
        request = _submit(customer=CustomerInfo(is_vip=True, membership_tier="GOLD", order_count=7))
        assert request.customer_info == CustomerInfo(is_vip=True, membership_tier="GOLD", order_count=7)

    def test_raises_requested_event(self):
        request = _submit()
        assert len(request._events) == 1
        event = request._events[0]
        assert isinstance(event, CancellationRequested)
        assert event.refund_amount == 900.00
        assert event.respond_by == request.respond_by

    def test_additional_reason_limit(self):
        with pytest.raises(ValidationError) as exc:
            _submit(additional_reason="x" * 501)
        assert "additional_reason" in exc.value.messages

    def test_additional_reason_at_limit_is_accepted(self):
        assert _submit(additional_reason="x" * 500).additional_reason


class TestApprove:
    def test_freezes_quote_and_bumps_version(self):
        request = _request_at_state(CancellationStatus.PENDING)
        later = NOW + timedelta(days=2)
        quote = quote_refund(_order(), later)
        request.approve(quote, decided_by="admin-1", now=later, notes="ok")

        assert request.status == CancellationStatus.APPROVED.value
        assert request.version == 2
        assert request.pricing_snapshot.refund_percentage == 75
        assert request.pricing_snapshot.computed_at == later
        assert request.admin_decision.decision == DecisionKind.APPROVE.value
        assert request.admin_decision.notes == "ok"
        assert request.is_pending is False

    def test_raises_approved_event(self):
        request = _request_at_state(CancellationStatus.PENDING)
        request.approve(quote_refund(_order(), NOW, custom_percentage=80), "admin-1", NOW, refund_percentage_override=80)
        event = request._events[0]
        assert isinstance(event, CancellationApproved)
        assert event.version == 2
        assert event.refund_percentage_override == 80
        assert request.refund_percentage_override == 80

    def test_override_outside_range_is_rejected(self):
        with pytest.raises(ValidationError):
            AdminDecision(
                decision=DecisionKind.APPROVE.value,
                refund_percentage_override=120,
                decided_by="admin-1",
                decided_at=NOW,
            )


class TestReject:
    def test_reject_keeps_snapshot(self):
        request = _request_at_state(CancellationStatus.PENDING)
        before = request.pricing_snapshot.refund_amount
        request.reject(decided_by="admin-1", now=NOW, notes="Already shipped")

        assert request.status == CancellationStatus.REJECTED.value
        assert request.version == 2
        assert request.pricing_snapshot.refund_amount == before
        assert isinstance(request._events[0], CancellationRejected)
        assert request._events[0].notes == "Already shipped"


class TestProcessed:
    def test_approved_request_can_be_processed(self):
        request = _request_at_state(CancellationStatus.APPROVED)
        request.mark_refund_processed("RF-9", RefundMethod.WALLET_CREDIT.value, NOW)

        assert request.status == CancellationStatus.PROCESSED.value
        assert request.version == 3
        assert request.refund_details.refund_reference == "RF-9"
        event = request._events[0]
        assert isinstance(event, RefundProcessed)
        assert event.refund_amount == request.pricing_snapshot.refund_amount


class TestInvalidTransitions:
    @pytest.mark.parametrize(
        "status",
        [CancellationStatus.APPROVED, CancellationStatus.REJECTED, CancellationStatus.PROCESSED],
    )
    def test_only_pending_requests_can_be_decided(self, status):
        request = _request_at_state(status)
        with pytest.raises(ValidationError) as exc:
            request.reject(decided_by="admin-2", now=NOW)
        assert "Cannot transition" in str(exc.value)

    def test_cannot_process_pending_request(self):
        request = _request_at_state(CancellationStatus.PENDING)
        with pytest.raises(ValidationError):
            request.mark_refund_processed("RF-1", RefundMethod.BANK_TRANSFER.value, NOW)

    def test_cannot_process_rejected_request(self):
        request = _request_at_state(CancellationStatus.REJECTED)
        with pytest.raises(ValidationError):
            request.mark_refund_processed("RF-1", RefundMethod.BANK_TRANSFER.value, NOW)

    def test_processed_is_terminal(self):
        request = _request_at_state(CancellationStatus.PROCESSED)
        with pytest.raises(ValidationError):
            request.approve(quote_refund(_order(), NOW), decided_by="admin-2", now=NOW)
