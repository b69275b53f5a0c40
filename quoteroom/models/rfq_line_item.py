from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from quoteroom.models.rfq import Rfq


class RfqLineItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rfq_line_items"

    rfq_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    specifications: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    notes: Mapped[str | None] = mapped_column(String(500))

    rfq: Mapped[Rfq] = relationship("Rfq", back_populates="line_items", lazy="noload")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_rfq_line_items_quantity_positive"),
        Index("ix_rfq_line_items_rfq_id", "rfq_id"),
    )
