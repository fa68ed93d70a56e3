"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state, with no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class CancellationState:
    """Tracks state for a single simulated cancellation lifecycle."""

    order_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    request_id: str | None = None
    version: int = 1
    current_status: str = "PENDING"
    quoted_percentage: float | None = None
