"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the cancellation API's validation
rules and match the exact field names expected by its Pydantic request schemas.
"""

import random
import uuid
from datetime import UTC, datetime, timedelta

from faker import Faker

fake = Faker()

CANCELLATION_REASONS = [
    "Changed mind",
    "Found better price",
    "Wrong item ordered",
    "Delivery delay",
    "Duplicate order",
    "Other",
]

SIZES = ["S", "M", "L", "XL"]


def unique_order_id() -> str:
    """Generate unique order ids like 'ORD-LT-a1b2c3d4'."""
    return f"ORD-LT-{uuid.uuid4().hex[:8]}"


def valid_email() -> str:
    local = fake.user_name()[:20]
    domain = fake.free_email_domain()
    return f"{local}.{uuid.uuid4().hex[:4]}@{domain}"


def _product_line(index: int) -> dict:
    """One product line using a random mix of the price sources the resolver understands."""
    original = round(random.uniform(199.0, 4999.0), 2)
    line = {
        "id": f"item-{index}",
        "quantity": random.randint(1, 3),
        "title": fake.word().capitalize(),
        "original_price": original,
        "size": random.choice(SIZES),
    }
    source = random.choice(["plain", "discount", "final", "size_table"])
    if source == "discount":
        line["discount_percent"] = random.choice([5, 10, 15, 20, 30])
    elif source == "final":
        line["final_price"] = round(original * random.uniform(0.6, 0.95), 2)
    elif source == "size_table":
        line["size_pricing_table"] = {"S": 0.9, "M": 1.0, "L": 1.1, "XL": 1.25}
    return line


def _bundle_line(index: int) -> dict:
    price = round(random.uniform(999.0, 7999.0), 2)
    return {
        "id": f"bundle-{index}",
        "item_type": "Bundle",
        "quantity": 1,
        "title": f"{fake.word().capitalize()} bundle",
        "bundle_price": price,
        "bundle_original_price": round(price * 1.2, 2),
    }


def seed_order_data(max_age_days: int = 20) -> dict:
    """Generate a SeedOrderRequest payload for an order placed within ``max_age_days``."""
    items = [_product_line(i) for i in range(1, random.randint(2, 4) + 1)]
    if random.random() < 0.3:
        items.append(_bundle_line(len(items) + 1))

    delivery_charge = random.choice([0.0, 49.0, 99.0])
    placed = datetime.now(UTC) - timedelta(hours=random.uniform(1, max_age_days * 24))
    status = random.choice(["Placed", "Processing", "Out_For_Delivery", "Delivered"])
    data = {
        "order_date": placed.isoformat(),
        "order_status": status,
        # Storefront totals; the engine prices lines itself
        "total_amt": 0.0,
        "delivery_charge": delivery_charge,
        "customer_id": f"cust-{uuid.uuid4().hex[:8]}",
        "customer_email": valid_email(),
        "items": items,
    }
    subtotal = sum(
        (item.get("bundle_price") or item.get("final_price") or item["original_price"]) * item["quantity"]
        for item in items
    )
    data["sub_total_amt"] = round(subtotal, 2)
    data["total_amt"] = round(subtotal + delivery_charge, 2)
    if status == "Delivered":
        data["actual_delivery_date"] = (placed + timedelta(hours=random.uniform(12, 72))).isoformat()
    return data


def customer_attributes() -> dict:
    return {
        "is_vip": random.random() < 0.1,
        "membership_tier": random.choice([None, None, "SILVER", "PREMIUM"]),
        "order_count": random.randint(0, 12),
    }


def submit_cancellation_data(order_id: str, item_ids: list[str] | None = None) -> dict:
    """Generate a SubmitCancellationRequest payload, partial when ``item_ids`` is given."""
    data = {
        "order_id": order_id,
        "cancellation_type": "PARTIAL_ITEMS" if item_ids else "FULL_ORDER",
        "reason": random.choice(CANCELLATION_REASONS),
        "additional_reason": fake.sentence(nb_words=10)[:500],
        "customer": customer_attributes(),
    }
    if item_ids:
        data["items_to_cancel"] = item_ids
    return data


def admin_id() -> str:
    return f"admin-{random.randint(1, 5):03d}"
