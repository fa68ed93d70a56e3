"""FastAPI routes for the Cancellations bounded context.

Customers preview and submit cancellations; admins review the queue and
decide. Each route translates between Pydantic schemas (external contract)
and Protean commands (internal domain concepts).
"""

import json
import os

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from cancellations.api.schemas import (
    AdminDecisionResponse,
    ApproveCancellationRequest,
    CancellationDetailResponse,
    CancellationQueueEntry,
    MarkRefundProcessedRequest,
    PreviewCancellationRequest,
    PreviewResponse,
    QuoteResponse,
    RefundDetailsResponse,
    RejectCancellationRequest,
    RequestIdResponse,
    SeedOrderRequest,
    SeedOrderResponse,
    SubmitCancellationRequest,
    VersionResponse,
)
from cancellations.clock import get_clock
from cancellations.orders import get_order_repository
from cancellations.projections.cancellation_queue import CancellationQueue
from cancellations.refund.calculator import quote_refund
from cancellations.refund.model import CustomerInfo, Order
from cancellations.refund.policy import load_refund_policy
from cancellations.request.decision import ApproveCancellation, RejectCancellation
from cancellations.request.errors import ConcurrencyConflict
from cancellations.request.processing import MarkRefundProcessed
from cancellations.request.quote import current_quote
from cancellations.request.request import CancellationType
from cancellations.request.store import get_cancellation_store
from cancellations.request.submission import SubmitCancellation

cancellation_router = APIRouter(prefix="/cancellations", tags=["cancellations"])


def register_conflict_handler(app: FastAPI) -> None:
    """Map lost decision races to HTTP 409."""

    @app.exception_handler(ConcurrencyConflict)
    async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflict) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "error": str(exc),
                "current_version": exc.actual_version,
                "status": exc.status,
            },
        )


def _quote_response(snapshot, is_live: bool) -> QuoteResponse:
    return QuoteResponse(
        refund_percentage=snapshot.refund_percentage,
        display_percentage=snapshot.display_percentage,
        refund_amount=snapshot.refund_amount,
        items_total=snapshot.items_total,
        delivery_refund_component=snapshot.delivery_refund_component,
        retained_amount=snapshot.retained_amount,
        timing=snapshot.timing,
        days_since_order=snapshot.days_since_order,
        breakdown=json.loads(snapshot.breakdown) if snapshot.breakdown else [],
        warnings=json.loads(snapshot.warnings) if snapshot.warnings else [],
        computed_at=snapshot.computed_at,
        is_live=is_live,
    )


def _customer(attributes) -> CustomerInfo | None:
    if attributes is None:
        return None
    return CustomerInfo(
        is_vip=attributes.is_vip,
        membership_tier=attributes.membership_tier,
        order_count=attributes.order_count,
    )


# ---------------------------------------------------------------------------
# Customer endpoints
# ---------------------------------------------------------------------------
@cancellation_router.post("/preview", response_model=PreviewResponse)
async def preview_cancellation(body: PreviewCancellationRequest) -> PreviewResponse:
    """Quote a cancellation without submitting it."""
    items_to_cancel = None
    if body.cancellation_type == CancellationType.PARTIAL_ITEMS.value:
        if not body.items_to_cancel:
            raise ValidationError({"items_to_cancel": ["Select at least one item to cancel"]})
        items_to_cancel = body.items_to_cancel
    elif body.cancellation_type != CancellationType.FULL_ORDER.value:
        raise ValidationError({"cancellation_type": [f"Unknown cancellation type: {body.cancellation_type}"]})

    order = get_order_repository().get_order(body.order_id)
    quote = quote_refund(
        order,
        get_clock().now(),
        items_to_cancel=items_to_cancel,
        customer=_customer(body.customer),
        policy=load_refund_policy(),
    )
    return PreviewResponse(
        cancellation_type=quote.cancellation_type,
        items_to_cancel=list(quote.items_to_cancel),
        refund_percentage=quote.refund_percentage,
        display_percentage=quote.display_percentage,
        refund_amount=quote.refund_amount,
        items_total=quote.items_total,
        delivery_refund_component=quote.delivery_refund_component,
        retained_amount=quote.retained_amount,
        timing=quote.timing.value,
        days_since_order=quote.days_since_order,
        breakdown=[term.to_dict() for term in quote.breakdown],
        warnings=list(quote.warnings),
        computed_at=quote.computed_at,
        is_live=True,
    )


@cancellation_router.post("", status_code=201, response_model=RequestIdResponse)
async def submit_cancellation(body: SubmitCancellationRequest) -> RequestIdResponse:
    """Submit a cancellation request for review."""
    customer = body.customer
    command = SubmitCancellation(
        order_id=body.order_id,
        cancellation_type=body.cancellation_type,
        items_to_cancel=json.dumps(body.items_to_cancel) if body.items_to_cancel else None,
        reason=body.reason,
        additional_reason=body.additional_reason,
        customer_id=body.customer_id,
        customer_email=body.customer_email,
        is_vip=customer.is_vip if customer else False,
        membership_tier=customer.membership_tier if customer else None,
        order_count=customer.order_count if customer else 0,
    )
    request_id = current_domain.process(command, asynchronous=False)
    return RequestIdResponse(request_id=request_id)


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------
@cancellation_router.get("", response_model=list[CancellationQueueEntry])
async def list_cancellations(
    status: str | None = None,
    customer_id: str | None = None,
    order_id: str | None = None,
) -> list[CancellationQueueEntry]:
    """List cancellation requests, oldest first.

    Filters combine. ``customer_id`` gives a customer's history and
    ``order_id`` the requests made against one order.
    """
    repo = current_domain.repository_for(CancellationQueue)
    query = repo._dao.query
    if status:
        query = query.filter(status=status.upper())
    if customer_id:
        query = query.filter(customer_id=customer_id)
    if order_id:
        query = query.filter(order_id=order_id)
    rows = query.order_by("requested_at").all().items
    return [
        CancellationQueueEntry(
            request_id=str(row.request_id),
            order_id=str(row.order_id),
            customer_id=str(row.customer_id) if row.customer_id else None,
            customer_email=row.customer_email,
            cancellation_type=row.cancellation_type,
            reason=row.reason,
            status=row.status,
            refund_percentage=row.refund_percentage,
            refund_amount=row.refund_amount,
            version=row.version,
            requested_at=row.requested_at,
            respond_by=row.respond_by,
            decided_by=row.decided_by,
        )
        for row in rows
    ]


@cancellation_router.get("/policy")
async def get_refund_policy() -> dict:
    """The refund policy currently applied to quotes."""
    return load_refund_policy().model_dump(mode="json")


@cancellation_router.get("/{request_id}", response_model=CancellationDetailResponse)
async def get_cancellation(request_id: str) -> CancellationDetailResponse:
    """Request details with the authoritative quote: live while pending, frozen after."""
    request = get_cancellation_store().get_request(request_id)
    order = get_order_repository().get_order(request.order_id)
    quote = current_quote(request, order, get_clock().now())

    decision = request.admin_decision
    details = request.refund_details
    return CancellationDetailResponse(
        request_id=str(request.id),
        order_id=str(request.order_id),
        customer_id=str(request.customer_id) if request.customer_id else None,
        customer_email=request.customer_email,
        cancellation_type=request.cancellation_type,
        items_to_cancel=request.item_ids,
        reason=request.reason,
        additional_reason=request.additional_reason,
        status=request.status,
        version=request.version,
        created_at=request.created_at,
        respond_by=request.respond_by,
        was_past_estimated_delivery=bool(request.was_past_estimated_delivery),
        quote=_quote_response(quote.snapshot, quote.is_live),
        admin_decision=(
            AdminDecisionResponse(
                decision=decision.decision,
                refund_percentage_override=decision.refund_percentage_override,
                notes=decision.notes,
                decided_by=decision.decided_by,
                decided_at=decision.decided_at,
            )
            if decision
            else None
        ),
        refund_details=(
            RefundDetailsResponse(
                refund_reference=details.refund_reference,
                refund_method=details.refund_method,
                processed_at=details.processed_at,
            )
            if details
            else None
        ),
    )


@cancellation_router.put("/{request_id}/approve", response_model=VersionResponse)
async def approve_cancellation(request_id: str, body: ApproveCancellationRequest) -> VersionResponse:
    """Approve a pending request and freeze its refund."""
    command = ApproveCancellation(
        request_id=request_id,
        expected_version=body.expected_version,
        decided_by=body.decided_by,
        refund_percentage_override=body.refund_percentage_override,
        notes=body.notes,
    )
    version = current_domain.process(command, asynchronous=False)
    return VersionResponse(version=version)


@cancellation_router.put("/{request_id}/reject", response_model=VersionResponse)
async def reject_cancellation(request_id: str, body: RejectCancellationRequest) -> VersionResponse:
    """Reject a pending request."""
    command = RejectCancellation(
        request_id=request_id,
        expected_version=body.expected_version,
        decided_by=body.decided_by,
        notes=body.notes,
    )
    version = current_domain.process(command, asynchronous=False)
    return VersionResponse(version=version)


@cancellation_router.put("/{request_id}/processed", response_model=VersionResponse)
async def mark_refund_processed(request_id: str, body: MarkRefundProcessedRequest) -> VersionResponse:
    """Record that the approved refund was paid out."""
    command = MarkRefundProcessed(
        request_id=request_id,
        refund_reference=body.refund_reference,
        refund_method=body.refund_method,
        expected_version=body.expected_version,
    )
    version = current_domain.process(command, asynchronous=False)
    return VersionResponse(version=version)


# ---------------------------------------------------------------------------
# Development support
# ---------------------------------------------------------------------------
@cancellation_router.put("/orders/{order_id}", response_model=SeedOrderResponse)
async def seed_order(order_id: str, body: SeedOrderRequest) -> SeedOrderResponse:
    """Load an order into the in-memory order repository (non-production only).

    Orders normally come from the storefront. This endpoint lets load tests
    and manual testing create orders to cancel against.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Order seeding not available in production")

    repository = get_order_repository()
    if not hasattr(repository, "save"):
        raise HTTPException(status_code=400, detail="Order seeding only available for in-memory orders")

    order = Order.from_mapping({"id": order_id, **body.model_dump()})
    repository.save(order)
    return SeedOrderResponse(order_id=order.id, active_items=len(order.active_items))
