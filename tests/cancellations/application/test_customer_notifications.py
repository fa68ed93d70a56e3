"""Customer notifications raised from the cancellation lifecycle."""

import pytest
from protean import current_domain

from cancellations.notifier.port import NotificationKind
from cancellations.request.decision import ApproveCancellation, RejectCancellation
from cancellations.request.processing import MarkRefundProcessed
from cancellations.request.submission import SubmitCancellation


def _submit(order_id="ORD-1001"):
    return current_domain.process(
        SubmitCancellation(order_id=order_id, cancellation_type="FULL_ORDER", reason="Changed mind"),
        asynchronous=False,
    )


@pytest.fixture(autouse=True)
def _order(clock, seeded_order):
    return seeded_order


class TestLifecycleNotifications:
    def test_customer_told_request_was_received(self, notifier):
        _submit()
        assert [n.kind for n in notifier.sent] == [NotificationKind.CANCELLATION_REQUESTED]
        notice = notifier.sent[0]
        assert notice.customer_email == "asha@example.com"
        assert notice.refund_amount == 900.00
        assert "ORD-1001" in notice.subject
        assert "48 hours" in notice.body

    def test_approval_and_payout(self, notifier):
        request_id = _submit()
        current_domain.process(
            ApproveCancellation(request_id=request_id, expected_version=1, decided_by="admin-1"),
            asynchronous=False,
        )
        current_domain.process(
            MarkRefundProcessed(request_id=request_id, refund_reference="RF-900"),
            asynchronous=False,
        )
        assert [n.kind for n in notifier.sent] == [
            NotificationKind.CANCELLATION_REQUESTED,
            NotificationKind.CANCELLATION_APPROVED,
            NotificationKind.REFUND_PROCESSED,
        ]
        assert "RF-900" in notifier.sent[-1].body

    def test_rejection(self, notifier):
        request_id = _submit()
        current_domain.process(
            RejectCancellation(request_id=request_id, expected_version=1, decided_by="admin-1", notes="Already shipped"),
            asynchronous=False,
        )
        assert notifier.sent[-1].kind == NotificationKind.CANCELLATION_REJECTED
        assert notifier.sent[-1].refund_amount == 0.0

    def test_missing_email_skips_notification(self, orders, order_factory, notifier):
        orders.save(order_factory(order_id="ORD-3003", customer_email=None))
        _submit(order_id="ORD-3003")
        assert notifier.sent == []

    def test_delivery_failure_does_not_fail_submission(self, notifier):
        notifier.configure(should_succeed=False)
        request_id = _submit()
        assert request_id
        assert notifier.sent == []
