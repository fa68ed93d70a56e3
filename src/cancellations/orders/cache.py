"""Read-through cache in front of an Order Repository.

Pricing a cancellation reads the same order several times (preview, submit,
live quote on every view of a pending request). The cache keeps the last read
per order and drops it whenever this context writes to that order.
"""

from cancellations.orders.port import OrderRepository
from cancellations.refund.model import Order
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)


class CachingOrderRepository(OrderRepository):
    def __init__(self, backend: OrderRepository, max_entries: int = 1024) -> None:
        self.backend = backend
        self.max_entries = max_entries
        self._entries: dict[str, Order] = {}
        self.hits = 0
        self.misses = 0

    def get_order(self, order_id: str) -> Order:
        key = str(order_id)
        if key in self._entries:
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        order = self.backend.get_order(key)
        if len(self._entries) >= self.max_entries:
            # Evict the oldest entry; dicts keep insertion order
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = order
        return order

    def cancel_items(self, order_id: str, item_ids: list[str]) -> Order:
        self.invalidate(order_id)
        return self.backend.cancel_items(order_id, item_ids)

    def cancel_order(self, order_id: str) -> Order:
        self.invalidate(order_id)
        return self.backend.cancel_order(order_id)

    def invalidate(self, order_id: str | None = None) -> None:
        """Drop one cached order, or everything when no id is given."""
        if order_id is None:
            self._entries.clear()
        else:
            self._entries.pop(str(order_id), None)
        logger.debug("order_cache_invalidated", order_id=order_id)

    def save(self, order: Order) -> Order:
        """Write through to a backend that supports seeding."""
        self.invalidate(order.id)
        return self.backend.save(order)
