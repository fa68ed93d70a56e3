"""In-memory order repository for development and testing.

Holds ``Order`` snapshots keyed by id. Orders are replaced wholesale on every
write since the model is immutable.
"""

from dataclasses import replace

from protean.exceptions import ObjectNotFoundError

from cancellations.orders.port import OrderRepository
from cancellations.refund.model import ItemStatus, Order, OrderStatus


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, orders=None) -> None:
        self.orders: dict[str, Order] = {}
        self.reads = 0
        for order in orders or []:
            self.save(order)

    def save(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    def get_order(self, order_id: str) -> Order:
        self.reads += 1
        try:
            return self.orders[str(order_id)]
        except KeyError:
            raise ObjectNotFoundError(f"Order {order_id} not found") from None

    def cancel_items(self, order_id: str, item_ids: list[str]) -> Order:
        order = self.get_order(order_id)
        targets = {str(item_id) for item_id in item_ids}
        items = tuple(
            replace(item, status=ItemStatus.CANCELLED) if item.id in targets else item for item in order.items
        )
        updated = replace(order, items=items)
        if not updated.active_items:
            updated = replace(updated, order_status=OrderStatus.CANCELLED)
        return self.save(updated)

    def cancel_order(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        items = tuple(replace(item, status=ItemStatus.CANCELLED) for item in order.items)
        return self.save(replace(order, items=items, order_status=OrderStatus.CANCELLED))
