"""Refund executor factory.

Provides get_refund_executor() / set_refund_executor() to swap
implementations. Defaults to FakeRefundExecutor.
"""

from cancellations.refund_executor.fake_adapter import FakeRefundExecutor
from cancellations.refund_executor.port import RefundExecutor

_current_executor: RefundExecutor | None = None


def get_refund_executor() -> RefundExecutor:
    global _current_executor
    if _current_executor is None:
        _current_executor = FakeRefundExecutor()
    return _current_executor


def set_refund_executor(executor: RefundExecutor) -> None:
    """Override the active refund executor (useful for tests)."""
    global _current_executor
    _current_executor = executor


def reset_refund_executor() -> None:
    global _current_executor
    _current_executor = None
