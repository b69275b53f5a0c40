"""Pydantic v2 schemas for client quote endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from quoteroom.models.enums import ClientQuoteStatus
from quoteroom.modules.rfq.schemas import UtcDatetime


class ClientQuoteCreate(BaseModel):
    accepted_quote_ids: list[uuid.UUID] | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    markup_percent: Decimal | None = Field(None, ge=0)
    # Per RFQ line item overrides of the default markup
    line_markups: dict[uuid.UUID, Decimal] = Field(default_factory=dict)
    valid_until: UtcDatetime | None = None


class ClientQuoteLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_line_item_id: uuid.UUID
    supplier_quote_id: uuid.UUID
    supplier_quote_line_item_id: uuid.UUID
    description: str
    quantity: int
    cost_unit_price: Decimal
    markup_percent: Decimal
    sell_unit_price: Decimal
    total_price: Decimal
    order_index: int


class ClientQuoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quote_number: str
    rfq_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None = None
    status: ClientQuoteStatus
    supplier_quote_ids: list[uuid.UUID]
    subtotal: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    valid_until: datetime | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    line_items: list[ClientQuoteLineItemResponse] = Field(default_factory=list)
