"""Refund executor port.

Receives an instruction to pay money back once a cancellation is approved.
Executing the refund (gateway call, wallet credit, bank transfer) belongs to
the payments side; this context only hands over the frozen figures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RefundInstruction:
    request_id: str
    order_id: str
    refund_amount: float
    refund_percentage: float
    currency: str = "INR"


@dataclass(frozen=True)
class RefundReceipt:
    """Acknowledgement that an instruction was accepted."""

    accepted: bool
    instruction_reference: str | None = None
    failure_reason: str | None = None


class RefundExecutor(ABC):
    @abstractmethod
    def execute(self, instruction: RefundInstruction) -> RefundReceipt:
        """Queue the refund described by ``instruction``."""
        ...
