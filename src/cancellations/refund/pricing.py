"""Per-line price resolution.

Order lines arrive with several overlapping price fields, and which of them is
populated depends on how the line was created (plain product, size variant,
discounted product, bundle). ``resolve`` walks an ordered precedence chain and
returns exactly one authoritative unit price per line, tagged with the rule
that produced it.

The resolver is total: missing or malformed fields never raise, they fall
through to the next rule and leave a warning behind.
"""

from dataclasses import dataclass, field
from enum import Enum

from cancellations.refund.model import ItemType, OrderItem
from cancellations.refund.money import as_amount, round2


class PriceSource(Enum):
    STORED_DISCOUNTED_PRICE = "STORED_DISCOUNTED_PRICE"
    FINAL_PRICE = "FINAL_PRICE"
    SIZE_ADJUSTED_PRICE = "SIZE_ADJUSTED_PRICE"
    SIZE_PRICING_TABLE = "SIZE_PRICING_TABLE"
    DISCOUNT_PERCENT = "DISCOUNT_PERCENT"
    ORIGINAL_PRICE = "ORIGINAL_PRICE"
    BUNDLE_PRICE = "BUNDLE_PRICE"
    ITEM_TOTAL = "ITEM_TOTAL"
    UNPRICED = "UNPRICED"


@dataclass(frozen=True)
class ResolvedPrice:
    unit_price: float
    original_price: float
    discount_percent: float
    line_total: float
    source: PriceSource
    warnings: tuple[str, ...] = field(default_factory=tuple)


class _Reader:
    """Reads price fields as amounts, remembering which ones were unusable."""

    def __init__(self, item: OrderItem) -> None:
        self.item = item
        self.warnings: list[str] = []

    def amount(self, name: str) -> float | None:
        raw = getattr(self.item.prices, name)
        value = as_amount(raw)
        if raw is not None and value is None:
            self.warnings.append(f"Item {self.item.id}: ignored malformed {name} {raw!r}")
        return value

    def positive(self, name: str) -> float | None:
        value = self.amount(name)
        return value if value else None

    def discount(self) -> float | None:
        value = self.amount("discount_percent")
        if value is None or value == 0:
            return None
        if value > 100:
            self.warnings.append(f"Item {self.item.id}: ignored out-of-range discount_percent {value}")
            return None
        return value

    def size_multiplier(self) -> float | None:
        table = self.item.prices.size_pricing_table
        if not table or self.item.size is None or self.item.size not in table:
            return None
        multiplier = as_amount(table[self.item.size])
        if not multiplier:
            self.warnings.append(
                f"Item {self.item.id}: ignored malformed size multiplier for {self.item.size!r}"
            )
            return None
        return multiplier


def _derived_discount(original: float, unit: float) -> float:
    if original > unit > 0:
        return round2((original - unit) / original * 100)
    return 0.0


def _apply_discount(base: float, discount: float | None) -> float:
    if discount is None:
        return base
    return base * (1 - discount / 100)


def _stored_line_price(reader: _Reader) -> tuple[float, PriceSource]:
    item_total = reader.positive("item_total")
    if item_total is not None:
        reader.warnings.append(f"Item {reader.item.id}: no unit price, derived from stored item total")
        return item_total / reader.item.quantity, PriceSource.ITEM_TOTAL
    reader.warnings.append(f"Item {reader.item.id}: no usable price, treated as 0")
    return 0.0, PriceSource.UNPRICED


def _resolve_product(reader: _Reader) -> tuple[float, float, PriceSource]:
    """Return (unit_price, original_price, source) for a product line."""
    original = reader.positive("original_price")

    stored = reader.positive("stored_discounted_price")
    if stored is not None:
        return stored, original or stored, PriceSource.STORED_DISCOUNTED_PRICE

    final = reader.positive("final_price")
    if final is not None:
        return final, original or final, PriceSource.FINAL_PRICE

    size_adjusted = reader.positive("size_adjusted_price")
    if size_adjusted is not None:
        unit = _apply_discount(size_adjusted, reader.discount())
        return unit, size_adjusted, PriceSource.SIZE_ADJUSTED_PRICE

    multiplier = reader.size_multiplier()
    if multiplier is not None and original is not None:
        sized = original * multiplier
        return _apply_discount(sized, reader.discount()), sized, PriceSource.SIZE_PRICING_TABLE

    if original is not None:
        discount = reader.discount()
        if discount is not None:
            return _apply_discount(original, discount), original, PriceSource.DISCOUNT_PERCENT
        return original, original, PriceSource.ORIGINAL_PRICE

    unit, source = _stored_line_price(reader)
    return unit, unit, source


def _resolve_bundle(reader: _Reader) -> tuple[float, float, PriceSource]:
    bundle_price = reader.positive("bundle_price")
    if bundle_price is None:
        unit, source = _stored_line_price(reader)
        return unit, reader.positive("bundle_original_price") or unit, source

    original = reader.positive("bundle_original_price") or bundle_price
    return bundle_price, original, PriceSource.BUNDLE_PRICE


def resolve(item: OrderItem) -> ResolvedPrice:
    """Resolve one authoritative unit price for an order line.

    The line total is rounded once, after multiplying by quantity, never
    per unit.
    """
    reader = _Reader(item)
    if item.item_type == ItemType.BUNDLE:
        unit, original, source = _resolve_bundle(reader)
    else:
        unit, original, source = _resolve_product(reader)

    return ResolvedPrice(
        unit_price=unit,
        original_price=original,
        discount_percent=_derived_discount(original, unit),
        line_total=round2(unit * item.quantity),
        source=source,
        warnings=tuple(reader.warnings),
    )


def items_total(items) -> float:
    """Sum of resolved line totals."""
    return round2(sum(resolve(item).line_total for item in items))
