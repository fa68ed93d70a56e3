"""Order Repository port.

Orders are owned by the storefront. This context reads them to price a
cancellation and, once a cancellation is approved, asks the storefront to mark
the affected items (or the whole order) cancelled.
"""

from abc import ABC, abstractmethod

from cancellations.refund.model import Order


class OrderRepository(ABC):
    """Abstract order source."""

    @abstractmethod
    def get_order(self, order_id: str) -> Order:
        """Return the order, or raise ``ObjectNotFoundError``."""
        ...

    @abstractmethod
    def cancel_items(self, order_id: str, item_ids: list[str]) -> Order:
        """Mark the given items cancelled and return the updated order."""
        ...

    @abstractmethod
    def cancel_order(self, order_id: str) -> Order:
        """Mark every active item and the order itself cancelled."""
        ...
