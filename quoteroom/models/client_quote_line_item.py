from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from quoteroom.models.client_quote import ClientQuote


class ClientQuoteLineItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "client_quote_line_items"

    client_quote_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("client_quotes.id", ondelete="CASCADE"),
        nullable=False,
    )
    rfq_line_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rfq_line_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    supplier_quote_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quotes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    supplier_quote_line_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quote_line_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_unit_price: Mapped[Decimal] = mapped_column(Numeric(15, 4), nullable=False)
    markup_percent: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False)
    sell_unit_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    client_quote: Mapped[ClientQuote] = relationship(
        "ClientQuote", back_populates="line_items", lazy="noload"
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_client_quote_line_items_quantity_positive"),
        CheckConstraint("markup_percent >= 0", name="ck_client_quote_line_items_markup_non_negative"),
        Index("ix_client_quote_line_items_client_quote_id", "client_quote_id"),
    )
