from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture

from cancellations.clock import FixedClock, reset_clock, set_clock
from cancellations.notifier import get_notifier, reset_notifier
from cancellations.orders import get_order_repository, reset_order_repository
from cancellations.refund.model import Order
from cancellations.refund_executor import get_refund_executor, reset_refund_executor
from cancellations.request.store import get_cancellation_store

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def cancellations_bed():
    from cancellations.domain import cancellations

    bed = DomainFixture(cancellations)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(cancellations_bed):
    with cancellations_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_adapters():
    yield
    reset_order_repository()
    reset_refund_executor()
    reset_notifier()
    reset_clock()
    get_cancellation_store().reset()


@pytest.fixture()
def clock():
    fixed = FixedClock(NOW)
    set_clock(fixed)
    return fixed


@pytest.fixture()
def orders():
    return get_order_repository()


@pytest.fixture()
def executor():
    return get_refund_executor()


@pytest.fixture()
def notifier():
    return get_notifier()


@pytest.fixture()
def order_factory():
    """Build orders from storefront-shaped data.

    The default is a two-line order (600 + 300) with 100 delivery, placed
    ``hours_ago`` hours before NOW and not yet delivered.
    """

    def _build(order_id="ORD-1001", hours_ago=10, **overrides) -> Order:
        data = {
            "id": order_id,
            "order_date": NOW - timedelta(hours=hours_ago),
            "order_status": "Processing",
            "total_amt": 1000.0,
            "sub_total_amt": 900.0,
            "delivery_charge": 100.0,
            "customer_id": "cust-042",
            "customer_email": "asha@example.com",
            "items": [
                {"id": "item-1", "quantity": 1, "original_price": 600.0, "title": "Jacket"},
                {"id": "item-2", "quantity": 1, "original_price": 300.0, "title": "Scarf"},
            ],
        }
        data.update(overrides)
        return Order.from_mapping(data)

    return _build


@pytest.fixture()
def seeded_order(orders, order_factory):
    return orders.save(order_factory())
