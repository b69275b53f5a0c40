from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quoteroom.models.enums import SupplierResponseStatus

if TYPE_CHECKING:
    from quoteroom.models.quote import Quote
    from quoteroom.models.rfq import Rfq


class SupplierRfq(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-supplier invitation and response record for one RFQ."""

    __tablename__ = "supplier_rfqs"

    rfq_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Registered supplier, or free-text vendor details for one-time vendors
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    vendor_name: Mapped[str | None] = mapped_column(String(255))
    vendor_email: Mapped[str | None] = mapped_column(String(255))
    response_status: Mapped[SupplierResponseStatus] = mapped_column(
        nullable=False, server_default="PENDING"
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    decline_reason: Mapped[str | None] = mapped_column(String(500))

    rfq: Mapped[Rfq] = relationship("Rfq", back_populates="supplier_rfqs", lazy="noload")
    quotes: Mapped[list[Quote]] = relationship(
        "Quote",
        back_populates="supplier_rfq",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="Quote.version",
    )

    __table_args__ = (
        CheckConstraint(
            "supplier_id IS NOT NULL OR vendor_email IS NOT NULL",
            name="ck_supplier_rfqs_supplier_or_vendor",
        ),
        Index("ix_supplier_rfqs_rfq_id", "rfq_id"),
        Index(
            "uq_supplier_rfqs_rfq_supplier",
            "rfq_id",
            "supplier_id",
            unique=True,
            postgresql_where="supplier_id IS NOT NULL",
        ),
    )
