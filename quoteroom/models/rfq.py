from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quoteroom.models.enums import RfqStatus

if TYPE_CHECKING:
    from quoteroom.models.client_quote import ClientQuote
    from quoteroom.models.rfq_line_item import RfqLineItem
    from quoteroom.models.rfq_transition import RfqTransition
    from quoteroom.models.supplier_rfq import SupplierRfq


class Rfq(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rfqs"

    rfq_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[RfqStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    response_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)
    metadata_extra: Mapped[dict] = mapped_column(
        JSONB, nullable=False, server_default="{}"
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    # Optimistic concurrency token, bumped by SQLAlchemy on every UPDATE
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False)

    line_items: Mapped[list[RfqLineItem]] = relationship(
        "RfqLineItem",
        back_populates="rfq",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="RfqLineItem.order_index",
    )
    supplier_rfqs: Mapped[list[SupplierRfq]] = relationship(
        "SupplierRfq", back_populates="rfq", lazy="noload", cascade="all, delete-orphan"
    )
    transitions: Mapped[list[RfqTransition]] = relationship(
        "RfqTransition", back_populates="rfq", lazy="noload", cascade="all, delete-orphan"
    )
    client_quotes: Mapped[list[ClientQuote]] = relationship(
        "ClientQuote", back_populates="rfq", lazy="noload"
    )

    __mapper_args__ = {"version_id_col": lock_version}

    __table_args__ = (
        Index("ix_rfqs_project_id", "project_id"),
        Index("ix_rfqs_status", "status"),
        Index(
            "ix_rfqs_valid_until",
            "valid_until",
            postgresql_where="status NOT IN ('CANCELLED', 'EXPIRED', 'QUOTE_ACCEPTED')",
        ),
        Index("ix_rfqs_rfq_number", "rfq_number"),
    )
