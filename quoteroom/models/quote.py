from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quoteroom.models.enums import QuoteStatus

if TYPE_CHECKING:
    from quoteroom.models.quote_line_item import QuoteLineItem
    from quoteroom.models.supplier_rfq import SupplierRfq


class Quote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One versioned supplier quote submitted against a SupplierRfq."""

    __tablename__ = "quotes"

    supplier_rfq_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("supplier_rfqs.id", ondelete="CASCADE"),
        nullable=False,
    )
    quote_number: Mapped[str] = mapped_column(String(50), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    status: Mapped[QuoteStatus] = mapped_column(
        nullable=False, server_default="SUBMITTED"
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, server_default="0"
    )
    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    supplier_rfq: Mapped[SupplierRfq] = relationship(
        "SupplierRfq", back_populates="quotes", lazy="noload"
    )
    line_items: Mapped[list[QuoteLineItem]] = relationship(
        "QuoteLineItem", back_populates="quote", lazy="noload", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint(
            "supplier_rfq_id", "version",
            name="uq_quotes_supplier_rfq_version",
        ),
        CheckConstraint(
            "total_amount >= 0",
            name="ck_quotes_total_amount_non_negative",
        ),
        CheckConstraint(
            "shipping_cost >= 0",
            name="ck_quotes_shipping_cost_non_negative",
        ),
        Index("ix_quotes_supplier_rfq_id", "supplier_rfq_id"),
        Index("ix_quotes_status", "status"),
        Index(
            "uq_quotes_one_accepted_per_supplier_rfq",
            "supplier_rfq_id",
            unique=True,
            postgresql_where="status = 'ACCEPTED'",
        ),
    )
