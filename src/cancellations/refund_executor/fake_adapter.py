"""Fake refund executor: records instructions for development and testing."""

from uuid import uuid4

from cancellations.refund_executor.port import RefundExecutor, RefundInstruction, RefundReceipt


class FakeRefundExecutor(RefundExecutor):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Refund executor unavailable"
        self.calls: list[RefundInstruction] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Refund executor unavailable") -> None:
        """Configure executor behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def execute(self, instruction: RefundInstruction) -> RefundReceipt:
        self.calls.append(instruction)
        if self.should_succeed:
            return RefundReceipt(accepted=True, instruction_reference=f"fake_rfi_{uuid4().hex[:12]}")
        return RefundReceipt(accepted=False, failure_reason=self.failure_reason)
