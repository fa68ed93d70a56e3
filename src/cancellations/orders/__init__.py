"""Order repository factory.

Provides get_order_repository() / set_order_repository() to swap sources.
The default is an in-memory store behind the read-through cache.
"""

from cancellations.orders.cache import CachingOrderRepository
from cancellations.orders.memory_adapter import InMemoryOrderRepository
from cancellations.orders.port import OrderRepository

_current_repository: OrderRepository | None = None


def get_order_repository() -> OrderRepository:
    """Return the current order repository."""
    global _current_repository
    if _current_repository is None:
        _current_repository = CachingOrderRepository(InMemoryOrderRepository())
    return _current_repository


def set_order_repository(repository: OrderRepository) -> None:
    """Override the active order repository (useful for tests)."""
    global _current_repository
    _current_repository = repository


def reset_order_repository() -> None:
    """Reset to the default repository."""
    global _current_repository
    _current_repository = None
