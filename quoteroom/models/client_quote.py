from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quoteroom.models.enums import ClientQuoteStatus

if TYPE_CHECKING:
    from quoteroom.models.client_quote_line_item import ClientQuoteLineItem
    from quoteroom.models.rfq import Rfq


class ClientQuote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Client-facing quote assembled from accepted supplier quotes."""

    __tablename__ = "client_quotes"

    quote_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    rfq_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rfqs.id", ondelete="RESTRICT"),
        nullable=False,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ClientQuoteStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
    )
    supplier_quote_ids: Mapped[list[uuid.UUID]] = mapped_column(
        ARRAY(UUID(as_uuid=True)), nullable=False
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, server_default="0"
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    rfq: Mapped[Rfq] = relationship("Rfq", back_populates="client_quotes", lazy="noload")
    line_items: Mapped[list[ClientQuoteLineItem]] = relationship(
        "ClientQuoteLineItem",
        back_populates="client_quote",
        lazy="noload",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_client_quotes_rfq_id", "rfq_id"),
        Index("ix_client_quotes_project_id", "project_id"),
    )
