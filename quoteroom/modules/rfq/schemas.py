"""Pydantic v2 schemas for RFQ, quote and comparison API endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from quoteroom.models.enums import (
    LineItemIssueKind,
    PriceClassification,
    QuoteStatus,
    RfqStatus,
    RfqTransitionType,
    SupplierResponseStatus,
)
from quoteroom.modules.rfq.lifecycle import as_utc

# Client-supplied timestamps; a missing offset means UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

# ---------------------------------------------------------------------------
# RFQ Line Item schemas
# ---------------------------------------------------------------------------


class RfqLineItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(..., gt=0)
    specifications: str | None = None
    order_index: int | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=500)


class RfqLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_id: uuid.UUID
    description: str
    quantity: int
    specifications: str | None = None
    order_index: int
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# RFQ schemas
# ---------------------------------------------------------------------------


class RfqCreate(BaseModel):
    project_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    response_deadline: UtcDatetime | None = None
    valid_until: UtcDatetime | None = None
    notes: str | None = None
    line_items: list[RfqLineItemCreate] = Field(default_factory=list)


class RfqResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_number: str
    project_id: uuid.UUID
    title: str
    description: str | None = None
    status: RfqStatus
    sent_at: datetime | None = None
    response_deadline: datetime | None = None
    valid_until: datetime | None = None
    accepted_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    expired_at: datetime | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    lock_version: int
    created_at: datetime
    updated_at: datetime
    line_items: list[RfqLineItemResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Supplier invitation schemas
# ---------------------------------------------------------------------------


class VendorContact(BaseModel):
    """A one-time vendor that is not registered as a supplier."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class SendRequest(BaseModel):
    supplier_ids: list[uuid.UUID] = Field(default_factory=list)
    vendors: list[VendorContact] = Field(default_factory=list)
    expected_version: int | None = None


class SupplierRfqResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_id: uuid.UUID
    supplier_id: uuid.UUID | None = None
    vendor_name: str | None = None
    vendor_email: str | None = None
    response_status: SupplierResponseStatus
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    responded_at: datetime | None = None
    decline_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class DeclineRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Quote Line Item schemas
# ---------------------------------------------------------------------------


class QuoteLineItemCreate(BaseModel):
    rfq_line_item_id: uuid.UUID
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    total_price: Decimal = Field(..., ge=0)
    lead_time_days: int | None = Field(None, ge=0)
    availability: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=500)


class QuoteLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quote_id: uuid.UUID
    rfq_line_item_id: uuid.UUID
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    lead_time_days: int | None = None
    availability: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Quote schemas
# ---------------------------------------------------------------------------


class QuoteCreate(BaseModel):
    quote_number: str | None = Field(None, max_length=50)
    total_amount: Decimal | None = Field(None, ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    lead_time_days: int | None = Field(None, ge=0)
    valid_until: UtcDatetime | None = None
    notes: str | None = None
    line_items: list[QuoteLineItemCreate] = Field(..., min_length=1)


class QuoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    supplier_rfq_id: uuid.UUID
    quote_number: str
    version: int
    status: QuoteStatus
    total_amount: Decimal
    shipping_cost: Decimal
    lead_time_days: int | None = None
    valid_until: datetime | None = None
    submitted_at: datetime | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    line_items: list[QuoteLineItemResponse] = Field(default_factory=list)


class QuoteListResponse(BaseModel):
    items: list[QuoteResponse]
    total: int


# ---------------------------------------------------------------------------
# Transition schemas
# ---------------------------------------------------------------------------


class TransitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_id: uuid.UUID
    from_status: RfqStatus
    to_status: RfqStatus
    transition_type: RfqTransitionType
    triggered_by: uuid.UUID | None = None
    trigger_source: str
    reason: str | None = None
    metadata_extra: dict = Field(default_factory=dict)
    created_at: datetime


# ---------------------------------------------------------------------------
# Action request schemas
# ---------------------------------------------------------------------------


class VersionedRequest(BaseModel):
    expected_version: int | None = None


class QuoteDecisionRequest(VersionedRequest):
    reason: str | None = Field(None, max_length=1000)


class CancelRequest(VersionedRequest):
    reason: str = Field(..., min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Comparison results
# ---------------------------------------------------------------------------


class BestPrice(BaseModel):
    """Lowest line total offered for one RFQ line item."""

    rfq_line_item_id: uuid.UUID
    quote_id: uuid.UUID
    quote_line_item_id: uuid.UUID
    unit_price: Decimal
    total_price: Decimal


class BidCell(BaseModel):
    """One quote's position on one RFQ line item.

    A quote that did not bid carries ``no_bid=True`` and no price. A missing
    bid is never rendered as a zero price.
    """

    quote_id: uuid.UUID
    no_bid: bool = False
    quote_line_item_id: uuid.UUID | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    lead_time_days: int | None = None
    availability: str | None = None
    classification: PriceClassification | None = None
    deviation_pct: Decimal | None = None

    @model_validator(mode="after")
    def _no_bid_has_no_price(self) -> BidCell:
        if self.no_bid and self.total_price is not None:
            raise ValueError("a no-bid cell cannot carry a price")
        return self


class BidMatrixRow(BaseModel):
    rfq_line_item_id: uuid.UUID
    description: str
    quantity: int
    order_index: int
    best: BestPrice | None = None
    bid_count: int = 0
    cells: list[BidCell] = Field(default_factory=list)


class QuoteMetrics(BaseModel):
    """RFQ-wide summary over valid quotes."""

    quote_count: int
    lowest_total: Decimal
    highest_total: Decimal
    average_total: Decimal
    shortest_lead_time_days: int | None = None
    longest_lead_time_days: int | None = None


class LineItemIssue(BaseModel):
    """A data-quality defect found on a submitted quote."""

    quote_id: uuid.UUID
    quote_line_item_id: uuid.UUID
    rfq_line_item_id: uuid.UUID
    kind: LineItemIssueKind


class ComparedQuote(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    supplier_rfq_id: uuid.UUID
    quote_number: str
    version: int
    status: QuoteStatus
    total_amount: Decimal
    shipping_cost: Decimal
    lead_time_days: int | None = None
    submitted_at: datetime | None = None


class ComparisonResponse(BaseModel):
    rfq_id: uuid.UUID
    status: RfqStatus
    quotes: list[ComparedQuote] = Field(default_factory=list)
    metrics: QuoteMetrics | None = None
    rows: list[BidMatrixRow] = Field(default_factory=list)
    issues: list[LineItemIssue] = Field(default_factory=list)
