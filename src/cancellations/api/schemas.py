"""Pydantic request/response schemas for the Cancellations API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CustomerAttributes(BaseModel):
    is_vip: bool = False
    membership_tier: str | None = Field(None, max_length=50)
    order_count: int = Field(0, ge=0)


class PreviewCancellationRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ORD-1001",
                    "cancellation_type": "PARTIAL_ITEMS",
                    "items_to_cancel": ["item-1"],
                    "customer": {"is_vip": False, "order_count": 6},
                }
            ]
        }
    }

    order_id: str
    cancellation_type: str = "FULL_ORDER"
    items_to_cancel: list[str] | None = None
    customer: CustomerAttributes | None = None


class SubmitCancellationRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ORD-1001",
                    "cancellation_type": "FULL_ORDER",
                    "reason": "Changed mind",
                    "additional_reason": "Ordered the wrong colour",
                    "customer_id": "cust-042",
                    "customer_email": "asha@example.com",
                }
            ]
        }
    }

    order_id: str
    cancellation_type: str = "FULL_ORDER"
    items_to_cancel: list[str] | None = None
    reason: str = Field(..., max_length=100)
    additional_reason: str | None = Field(None, max_length=500)
    customer_id: str | None = None
    customer_email: str | None = Field(None, max_length=255)
    customer: CustomerAttributes | None = None


class ApproveCancellationRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "expected_version": 1,
                    "decided_by": "admin-007",
                    "refund_percentage_override": 80,
                    "notes": "Goodwill gesture for a delayed shipment",
                }
            ]
        }
    }

    expected_version: int = Field(..., ge=1)
    decided_by: str
    refund_percentage_override: float | None = Field(None, ge=0, le=100)
    notes: str | None = None


class RejectCancellationRequest(BaseModel):
    expected_version: int = Field(..., ge=1)
    decided_by: str
    notes: str | None = None


class MarkRefundProcessedRequest(BaseModel):
    refund_reference: str = Field(..., max_length=255)
    refund_method: str = "ORIGINAL_PAYMENT_METHOD"
    expected_version: int | None = Field(None, ge=1)


class SeedOrderItem(BaseModel):
    id: str
    item_type: str = "Product"
    quantity: int
    title: str = ""
    size: str | None = None
    status: str = "Active"
    original_price: float | None = None
    stored_discounted_price: float | None = None
    final_price: float | None = None
    size_adjusted_price: float | None = None
    discount_percent: float | None = None
    size_pricing_table: dict[str, float] | None = None
    item_total: float | None = None
    bundle_price: float | None = None
    bundle_original_price: float | None = None


class SeedOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_date": "2026-03-01T10:00:00+00:00",
                    "order_status": "Processing",
                    "total_amt": 1000.0,
                    "sub_total_amt": 900.0,
                    "delivery_charge": 100.0,
                    "customer_email": "asha@example.com",
                    "items": [
                        {"id": "item-1", "quantity": 1, "original_price": 600.0},
                        {"id": "item-2", "quantity": 1, "original_price": 300.0},
                    ],
                }
            ]
        }
    }

    order_date: datetime
    order_status: str = "Placed"
    total_amt: float
    sub_total_amt: float | None = None
    delivery_charge: float = 0.0
    estimated_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    customer_id: str | None = None
    customer_email: str | None = None
    items: list[SeedOrderItem]


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class BreakdownTermResponse(BaseModel):
    kind: str
    amount: float
    reason: str


class QuoteResponse(BaseModel):
    refund_percentage: float
    display_percentage: int | None = None
    refund_amount: float
    items_total: float
    delivery_refund_component: float
    retained_amount: float
    timing: str | None = None
    days_since_order: int | None = None
    breakdown: list[BreakdownTermResponse] = []
    warnings: list[str] = []
    computed_at: datetime
    is_live: bool


class PreviewResponse(QuoteResponse):
    cancellation_type: str
    items_to_cancel: list[str] = []


class AdminDecisionResponse(BaseModel):
    decision: str
    refund_percentage_override: float | None = None
    notes: str | None = None
    decided_by: str
    decided_at: datetime


class RefundDetailsResponse(BaseModel):
    refund_reference: str
    refund_method: str
    processed_at: datetime


class CancellationDetailResponse(BaseModel):
    request_id: str
    order_id: str
    customer_id: str | None = None
    customer_email: str | None = None
    cancellation_type: str
    items_to_cancel: list[str] = []
    reason: str
    additional_reason: str | None = None
    status: str
    version: int
    created_at: datetime | None = None
    respond_by: datetime | None = None
    was_past_estimated_delivery: bool = False
    quote: QuoteResponse
    admin_decision: AdminDecisionResponse | None = None
    refund_details: RefundDetailsResponse | None = None


class CancellationQueueEntry(BaseModel):
    request_id: str
    order_id: str
    customer_id: str | None = None
    customer_email: str | None = None
    cancellation_type: str
    reason: str
    status: str
    refund_percentage: float | None = None
    refund_amount: float | None = None
    version: int | None = None
    requested_at: datetime | None = None
    respond_by: datetime | None = None
    decided_by: str | None = None


class RequestIdResponse(BaseModel):
    request_id: str


class VersionResponse(BaseModel):
    status: str = "ok"
    version: int


class SeedOrderResponse(BaseModel):
    order_id: str
    active_items: int
