"""RFQ, quote and comparison API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quoteroom.api.dependencies import get_actor_id
from quoteroom.database.session import get_db
from quoteroom.models.enums import QuoteStatus
from quoteroom.modules.rfq.comparison_service import ComparisonService
from quoteroom.modules.rfq.quote_service import QuoteService
from quoteroom.modules.rfq.rfq_service import RfqService
from quoteroom.modules.rfq.schemas import (
    CancelRequest,
    ComparisonResponse,
    DeclineRequest,
    QuoteCreate,
    QuoteDecisionRequest,
    QuoteListResponse,
    QuoteResponse,
    RfqCreate,
    RfqLineItemCreate,
    RfqLineItemResponse,
    RfqResponse,
    SendRequest,
    SupplierRfqResponse,
    TransitionResponse,
    VersionedRequest,
)
from quoteroom.schemas.responses import ErrorResponse

router = APIRouter(
    prefix="/rfqs",
    tags=["rfqs"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


# ---------------------------------------------------------------------------
# RFQ
# ---------------------------------------------------------------------------


@router.post("/", response_model=RfqResponse, status_code=201)
async def create_rfq(
    body: RfqCreate,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a new RFQ in DRAFT status."""
    svc = RfqService(db)
    rfq = await svc.create_rfq(
        project_id=body.project_id,
        title=body.title,
        created_by=actor_id,
        description=body.description,
        response_deadline=body.response_deadline,
        valid_until=body.valid_until,
        notes=body.notes,
    )

    # Process inline line items if provided
    for index, item in enumerate(body.line_items):
        await svc.add_line_item(
            rfq_id=rfq.id,
            description=item.description,
            quantity=item.quantity,
            specifications=item.specifications,
            order_index=item.order_index if item.order_index is not None else index,
            notes=item.notes,
        )

    # Re-fetch to include the newly added line items in the response
    if body.line_items:
        rfq = await svc.get_rfq(rfq.id)

    return RfqResponse.model_validate(rfq)


@router.get("/{rfq_id}", response_model=RfqResponse)
async def get_rfq(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a single RFQ by ID."""
    svc = RfqService(db)
    rfq = await svc.get_rfq(rfq_id)
    return RfqResponse.model_validate(rfq)


@router.delete("/{rfq_id}", status_code=204)
async def delete_rfq(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a DRAFT or CANCELLED RFQ that has no quotes."""
    svc = RfqService(db)
    await svc.delete_rfq(rfq_id)


# ---------------------------------------------------------------------------
# Line Items
# ---------------------------------------------------------------------------


@router.post(
    "/{rfq_id}/line-items",
    response_model=RfqLineItemResponse,
    status_code=201,
)
async def add_line_item(
    rfq_id: uuid.UUID,
    body: RfqLineItemCreate,
    db: AsyncSession = Depends(get_db),
):
    """Add a line item to a DRAFT RFQ."""
    svc = RfqService(db)
    item = await svc.add_line_item(
        rfq_id=rfq_id,
        description=body.description,
        quantity=body.quantity,
        specifications=body.specifications,
        order_index=body.order_index,
        notes=body.notes,
    )
    return RfqLineItemResponse.model_validate(item)


@router.get("/{rfq_id}/line-items", response_model=list[RfqLineItemResponse])
async def list_line_items(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = RfqService(db)
    items = await svc.get_line_items(rfq_id)
    return [RfqLineItemResponse.model_validate(i) for i in items]


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


@router.post("/{rfq_id}/send", response_model=list[SupplierRfqResponse])
async def send_rfq(
    rfq_id: uuid.UUID,
    body: SendRequest,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Send the RFQ to suppliers. Suppliers already sent to are skipped."""
    svc = RfqService(db)
    sent = await svc.send_to_suppliers(
        rfq_id=rfq_id,
        supplier_ids=body.supplier_ids,
        vendors=[v.model_dump() for v in body.vendors],
        triggered_by=actor_id,
        expected_version=body.expected_version,
    )
    return [SupplierRfqResponse.model_validate(s) for s in sent]


@router.get("/{rfq_id}/suppliers", response_model=list[SupplierRfqResponse])
async def list_supplier_rfqs(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """List every supplier the RFQ was sent to, with response status."""
    svc = RfqService(db)
    supplier_rfqs = await svc.list_supplier_rfqs(rfq_id)
    return [SupplierRfqResponse.model_validate(s) for s in supplier_rfqs]


@router.post(
    "/{rfq_id}/suppliers/{supplier_rfq_id}/quotes",
    response_model=QuoteResponse,
    status_code=201,
)
async def submit_quote(
    rfq_id: uuid.UUID,
    supplier_rfq_id: uuid.UUID,
    body: QuoteCreate,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit a quote, or a new version of one, for a supplier invitation."""
    svc = QuoteService(db)
    quote = await svc.submit_quote(
        rfq_id=rfq_id,
        supplier_rfq_id=supplier_rfq_id,
        line_items=[item.model_dump() for item in body.line_items],
        total_amount=body.total_amount,
        shipping_cost=body.shipping_cost,
        lead_time_days=body.lead_time_days,
        valid_until=body.valid_until,
        quote_number=body.quote_number,
        notes=body.notes,
        submitted_by=actor_id,
    )
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{rfq_id}/suppliers/{supplier_rfq_id}/decline",
    response_model=SupplierRfqResponse,
)
async def decline_invitation(
    rfq_id: uuid.UUID,
    supplier_rfq_id: uuid.UUID,
    body: DeclineRequest,
    db: AsyncSession = Depends(get_db),
):
    """Record that a supplier will not quote."""
    svc = QuoteService(db)
    supplier_rfq = await svc.decline_invitation(rfq_id, supplier_rfq_id, reason=body.reason)
    return SupplierRfqResponse.model_validate(supplier_rfq)


@router.post(
    "/{rfq_id}/suppliers/{supplier_rfq_id}/view",
    response_model=SupplierRfqResponse,
)
async def mark_viewed(
    rfq_id: uuid.UUID,
    supplier_rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = QuoteService(db)
    supplier_rfq = await svc.mark_viewed(rfq_id, supplier_rfq_id)
    return SupplierRfqResponse.model_validate(supplier_rfq)


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


@router.get("/{rfq_id}/quotes", response_model=QuoteListResponse)
async def list_quotes(
    rfq_id: uuid.UUID,
    status: QuoteStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List every quote version submitted against an RFQ."""
    svc = QuoteService(db)
    quotes = await svc.list_quotes_for_rfq(rfq_id, status=status)
    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in quotes],
        total=len(quotes),
    )


@router.get("/{rfq_id}/quotes/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    rfq_id: uuid.UUID,
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = QuoteService(db)
    quote = await svc.get_quote(rfq_id, quote_id)
    return QuoteResponse.model_validate(quote)


@router.post("/{rfq_id}/quotes/{quote_id}/accept", response_model=RfqResponse)
async def accept_quote(
    rfq_id: uuid.UUID,
    quote_id: uuid.UUID,
    body: QuoteDecisionRequest,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Accept a supplier quote. Other suppliers' quotes are left as they are."""
    svc = RfqService(db)
    rfq = await svc.accept_quote(
        rfq_id,
        quote_id,
        triggered_by=actor_id,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return RfqResponse.model_validate(rfq)


@router.post("/{rfq_id}/quotes/{quote_id}/reject", response_model=RfqResponse)
async def reject_quote(
    rfq_id: uuid.UUID,
    quote_id: uuid.UUID,
    body: QuoteDecisionRequest,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Reject a supplier quote."""
    svc = RfqService(db)
    rfq = await svc.reject_quote(
        rfq_id,
        quote_id,
        triggered_by=actor_id,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return RfqResponse.model_validate(rfq)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


@router.post("/{rfq_id}/cancel", response_model=RfqResponse)
async def cancel_rfq(
    rfq_id: uuid.UUID,
    body: CancelRequest,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an RFQ. Irreversible."""
    svc = RfqService(db)
    rfq = await svc.cancel(
        rfq_id,
        reason=body.reason,
        triggered_by=actor_id,
        expected_version=body.expected_version,
    )
    return RfqResponse.model_validate(rfq)


@router.post("/{rfq_id}/expire", response_model=RfqResponse)
async def expire_rfq(
    rfq_id: uuid.UUID,
    body: VersionedRequest,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Expire an RFQ ahead of its deadline."""
    svc = RfqService(db)
    rfq = await svc.expire(
        rfq_id,
        triggered_by=actor_id,
        expected_version=body.expected_version,
    )
    return RfqResponse.model_validate(rfq)


@router.get("/{rfq_id}/transitions", response_model=list[TransitionResponse])
async def get_transitions(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get the full transition (audit) history for an RFQ."""
    svc = RfqService(db)
    transitions = await svc.get_transitions(rfq_id)
    return [TransitionResponse.model_validate(t) for t in transitions]


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


@router.get("/{rfq_id}/comparison", response_model=ComparisonResponse)
async def get_comparison(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Side-by-side comparison: bid matrix per line item plus RFQ-wide metrics."""
    svc = ComparisonService(db)
    return await svc.get_comparison(rfq_id)
