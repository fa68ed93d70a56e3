"""Read-only order data consumed by the refund engine.

These are plain frozen dataclasses rather than Protean aggregates: orders are
owned by the storefront and reach this context through the Order Repository
port. The engine only ever reads them.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError


class ItemType(Enum):
    PRODUCT = "Product"
    BUNDLE = "Bundle"


class ItemStatus(Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


class OrderStatus(Enum):
    PLACED = "Placed"
    PROCESSING = "Processing"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class PriceSources:
    """Every price field an order line may carry.

    Storefront data is inconsistent about which of these are filled in;
    ``pricing.resolve`` decides which one wins.
    """

    original_price: float | None = None
    stored_discounted_price: float | None = None
    final_price: float | None = None
    size_adjusted_price: float | None = None
    discount_percent: float | None = None
    size_pricing_table: Mapping[str, float] | None = None
    item_total: float | None = None
    bundle_price: float | None = None
    bundle_original_price: float | None = None


@dataclass(frozen=True)
class OrderItem:
    id: str
    item_type: ItemType
    quantity: int
    prices: PriceSources = field(default_factory=PriceSources)
    size: str | None = None
    status: ItemStatus = ItemStatus.ACTIVE
    title: str = ""

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError({"quantity": [f"Item {self.id} must have a positive whole quantity"]})

    @property
    def is_active(self) -> bool:
        return self.status == ItemStatus.ACTIVE

    @classmethod
    def from_mapping(cls, data: Mapping) -> "OrderItem":
        prices = PriceSources(
            original_price=data.get("original_price"),
            stored_discounted_price=data.get("stored_discounted_price"),
            final_price=data.get("final_price"),
            size_adjusted_price=data.get("size_adjusted_price"),
            discount_percent=data.get("discount_percent"),
            size_pricing_table=data.get("size_pricing_table"),
            item_total=data.get("item_total"),
            bundle_price=data.get("bundle_price"),
            bundle_original_price=data.get("bundle_original_price"),
        )
        return cls(
            id=str(data["id"]),
            item_type=ItemType(data.get("item_type", ItemType.PRODUCT.value)),
            quantity=data["quantity"],
            prices=prices,
            size=data.get("size"),
            status=ItemStatus(data.get("status", ItemStatus.ACTIVE.value)),
            title=data.get("title", ""),
        )


@dataclass(frozen=True)
class Order:
    id: str
    order_date: datetime
    items: tuple[OrderItem, ...]
    total_amt: float
    delivery_charge: float = 0.0
    sub_total_amt: float | None = None
    order_status: OrderStatus = OrderStatus.PLACED
    estimated_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    customer_id: str | None = None
    customer_email: str | None = None

    @property
    def active_items(self) -> list[OrderItem]:
        return [item for item in self.items if item.is_active]

    def item(self, item_id: str) -> OrderItem | None:
        return next((i for i in self.items if i.id == str(item_id)), None)

    @classmethod
    def from_mapping(cls, data: Mapping) -> "Order":
        """Build an order from storefront JSON, rejecting structurally bad input.

        Price fields are passed through as-is; missing or malformed prices are
        the price resolver's problem, not a validation failure.
        """
        errors: dict[str, list[str]] = {}

        order_id = data.get("id")
        if not order_id:
            errors.setdefault("order_id", []).append("Order reference is required")

        order_date = _parse_datetime(data.get("order_date"))
        if order_date is None:
            errors.setdefault("order_date", []).append("Order date is required")

        delivery_charge = _number(data.get("delivery_charge", 0.0))
        if delivery_charge is None or delivery_charge < 0:
            errors.setdefault("delivery_charge", []).append("Delivery charge must be a non-negative number")

        order_status = _enum_member(OrderStatus, data.get("order_status", OrderStatus.PLACED.value))
        if order_status is None:
            errors.setdefault("order_status", []).append(f"Unknown order status: {data.get('order_status')}")

        items = []
        for position, raw in enumerate(data.get("items") or []):
            label = raw.get("id", position)
            quantity = raw.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                errors.setdefault("quantity", []).append(f"Item {label} must have a positive whole quantity")
                continue
            if not raw.get("id"):
                errors.setdefault("items", []).append(f"Item at position {position} has no id")
                continue
            if _enum_member(ItemType, raw.get("item_type", ItemType.PRODUCT.value)) is None:
                errors.setdefault("item_type", []).append(f"Item {label} has unknown type {raw.get('item_type')}")
                continue
            if _enum_member(ItemStatus, raw.get("status", ItemStatus.ACTIVE.value)) is None:
                errors.setdefault("status", []).append(f"Item {label} has unknown status {raw.get('status')}")
                continue
            items.append(OrderItem.from_mapping(raw))

        if errors:
            raise ValidationError(errors)

        return cls(
            id=str(order_id),
            order_date=order_date,
            items=tuple(items),
            total_amt=_number(data.get("total_amt")) or 0.0,
            delivery_charge=delivery_charge,
            sub_total_amt=_number(data.get("sub_total_amt")),
            order_status=order_status,
            estimated_delivery_date=_parse_datetime(data.get("estimated_delivery_date")),
            actual_delivery_date=_parse_datetime(data.get("actual_delivery_date")),
            customer_id=data.get("customer_id"),
            customer_email=data.get("customer_email"),
        )


@dataclass(frozen=True)
class CustomerInfo:
    """Customer attributes that earn refund bonuses."""

    is_vip: bool = False
    membership_tier: str | None = None
    order_count: int = 0


def _enum_member(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _number(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
