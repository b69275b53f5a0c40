"""Quote lifecycle service: submit, revise, decline, view, read."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quoteroom.exceptions import InvalidTransitionException, NotFoundException
from quoteroom.models.enums import QuoteStatus, SupplierResponseStatus
from quoteroom.models.quote import Quote
from quoteroom.models.quote_line_item import QuoteLineItem
from quoteroom.models.supplier_rfq import SupplierRfq
from quoteroom.modules.events.outbox_service import OutboxService
from quoteroom.modules.rfq.constants import (
    EVENT_QUOTE_REVISED,
    EVENT_QUOTE_SUBMITTED,
    EVENT_SUPPLIER_DECLINED,
    QUOTABLE_STATUSES,
)
from quoteroom.modules.rfq.rfq_service import RfqService
from quoteroom.modules.rfq.validators import resolve_total_amount, validate_quote_lines

logger = logging.getLogger(__name__)

# Responses that can still submit (or revise) a quote
_OPEN_RESPONSE_STATUSES = {
    SupplierResponseStatus.PENDING,
    SupplierResponseStatus.SUBMITTED,
}


class QuoteService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.rfq_service = RfqService(db)

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit_quote(
        self,
        rfq_id: uuid.UUID,
        supplier_rfq_id: uuid.UUID,
        line_items: list[dict],
        total_amount: Decimal | None = None,
        shipping_cost: Decimal = Decimal("0"),
        lead_time_days: int | None = None,
        valid_until: datetime | None = None,
        quote_number: str | None = None,
        notes: str | None = None,
        submitted_by: uuid.UUID | None = None,
    ) -> Quote:
        """Submit a quote (or a new version of one) for a supplier invitation.

        Validates:
        - RFQ is SENT, PARTIALLY_QUOTED or FULLY_QUOTED
        - the invitation belongs to the RFQ and is still open
        - every line references a distinct RFQ line item, with a positive
          quantity and total_price = unit_price x quantity
        - a supplied total_amount equals line totals plus shipping

        Earlier SUBMITTED versions become REVISED, then the RFQ's coverage
        status is brought up to date.
        """
        rfq = await self.rfq_service.get_rfq(rfq_id)
        if rfq.status not in QUOTABLE_STATUSES:
            raise InvalidTransitionException(
                f"Cannot submit a quote for RFQ in status '{rfq.status.value}'"
            )

        supplier_rfq = await self._get_supplier_rfq(rfq_id, supplier_rfq_id)
        if supplier_rfq.response_status not in _OPEN_RESPONSE_STATUSES:
            raise InvalidTransitionException(
                f"Cannot submit a quote for an invitation in status "
                f"'{supplier_rfq.response_status.value}'"
            )

        line_sum = validate_quote_lines(line_items, [item.id for item in rfq.line_items])
        total = resolve_total_amount(line_sum, shipping_cost, total_amount)

        prior_result = await self.db.execute(
            select(Quote)
            .where(Quote.supplier_rfq_id == supplier_rfq_id)
            .order_by(Quote.version.desc())
        )
        prior_quotes = list(prior_result.scalars().all())
        new_version = prior_quotes[0].version + 1 if prior_quotes else 1
        for previous in prior_quotes:
            if previous.status == QuoteStatus.SUBMITTED:
                previous.status = QuoteStatus.REVISED

        if lead_time_days is None:
            line_lead_times = [
                item["lead_time_days"] for item in line_items
                if item.get("lead_time_days") is not None
            ]
            lead_time_days = max(line_lead_times) if line_lead_times else None

        now = datetime.now(UTC)
        quote = Quote(
            supplier_rfq_id=supplier_rfq_id,
            quote_number=quote_number or f"SQ-{int(now.timestamp() * 1000)}",
            version=new_version,
            status=QuoteStatus.SUBMITTED,
            total_amount=total,
            shipping_cost=Decimal(str(shipping_cost)),
            lead_time_days=lead_time_days,
            valid_until=valid_until,
            submitted_at=now,
            notes=notes,
            line_items=[
                QuoteLineItem(
                    rfq_line_item_id=item["rfq_line_item_id"],
                    unit_price=Decimal(str(item["unit_price"])),
                    quantity=int(item["quantity"]),
                    total_price=Decimal(str(item["total_price"])),
                    lead_time_days=item.get("lead_time_days"),
                    availability=item.get("availability"),
                    notes=item.get("notes"),
                )
                for item in line_items
            ],
        )
        self.db.add(quote)

        supplier_rfq.response_status = SupplierResponseStatus.SUBMITTED
        supplier_rfq.responded_at = now
        await self.db.flush()

        await self.rfq_service.sync_quoted_status(
            rfq, triggered_by=submitted_by, trigger_source="SUPPLIER"
        )

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_QUOTE_SUBMITTED if new_version == 1 else EVENT_QUOTE_REVISED,
            aggregate_type="quote",
            aggregate_id=str(quote.id),
            payload={
                "quote_id": str(quote.id),
                "rfq_id": str(rfq_id),
                "supplier_rfq_id": str(supplier_rfq_id),
                "version": new_version,
                "total_amount": str(total),
            },
        )

        logger.info(
            "Quote %s v%d submitted for RFQ %s by invitation %s (total: %s)",
            quote.id, new_version, rfq_id, supplier_rfq_id, total,
        )
        return quote

    # ------------------------------------------------------------------
    # Invitation responses
    # ------------------------------------------------------------------

    async def decline_invitation(
        self,
        rfq_id: uuid.UUID,
        supplier_rfq_id: uuid.UUID,
        reason: str | None = None,
    ) -> SupplierRfq:
        """Record that a supplier will not quote. Only PENDING invitations."""
        rfq = await self.rfq_service.get_rfq(rfq_id)
        if rfq.status not in QUOTABLE_STATUSES:
            raise InvalidTransitionException(
                f"Cannot decline an invitation for RFQ in status '{rfq.status.value}'"
            )

        supplier_rfq = await self._get_supplier_rfq(rfq_id, supplier_rfq_id)
        if supplier_rfq.response_status != SupplierResponseStatus.PENDING:
            raise InvalidTransitionException(
                f"Cannot decline an invitation in status "
                f"'{supplier_rfq.response_status.value}'"
            )

        supplier_rfq.response_status = SupplierResponseStatus.DECLINED
        supplier_rfq.decline_reason = reason
        supplier_rfq.responded_at = datetime.now(UTC)
        await self.db.flush()

        await self.rfq_service.sync_quoted_status(rfq, trigger_source="SUPPLIER")

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_SUPPLIER_DECLINED,
            aggregate_type="supplier_rfq",
            aggregate_id=str(supplier_rfq_id),
            payload={
                "rfq_id": str(rfq_id),
                "supplier_rfq_id": str(supplier_rfq_id),
                "reason": reason,
            },
        )
        logger.info("Invitation %s on RFQ %s declined", supplier_rfq_id, rfq_id)
        return supplier_rfq

    async def mark_viewed(self, rfq_id: uuid.UUID, supplier_rfq_id: uuid.UUID) -> SupplierRfq:
        """Stamp viewed_at the first time a supplier opens the RFQ."""
        supplier_rfq = await self._get_supplier_rfq(rfq_id, supplier_rfq_id)
        if supplier_rfq.viewed_at is None:
            supplier_rfq.viewed_at = datetime.now(UTC)
            await self.db.flush()
        return supplier_rfq

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_quote(self, rfq_id: uuid.UUID, quote_id: uuid.UUID) -> Quote:
        """Get a quote with its line items, scoped to one RFQ."""
        result = await self.db.execute(
            select(Quote)
            .join(SupplierRfq, Quote.supplier_rfq_id == SupplierRfq.id)
            .options(selectinload(Quote.line_items))
            .where(Quote.id == quote_id, SupplierRfq.rfq_id == rfq_id)
        )
        quote = result.scalar_one_or_none()
        if quote is None:
            raise NotFoundException(f"Quote {quote_id} not found on RFQ {rfq_id}")
        return quote

    async def list_quotes_for_rfq(
        self,
        rfq_id: uuid.UUID,
        status: QuoteStatus | None = None,
    ) -> list[Quote]:
        """All quote versions for an RFQ, with line items, oldest submission first."""
        query = (
            select(Quote)
            .join(SupplierRfq, Quote.supplier_rfq_id == SupplierRfq.id)
            .options(selectinload(Quote.line_items))
            .where(SupplierRfq.rfq_id == rfq_id)
        )
        if status is not None:
            query = query.where(Quote.status == status)
        query = query.order_by(Quote.submitted_at.asc(), Quote.version.asc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_supplier_rfq(
        self, rfq_id: uuid.UUID, supplier_rfq_id: uuid.UUID
    ) -> SupplierRfq:
        result = await self.db.execute(
            select(SupplierRfq).where(
                SupplierRfq.id == supplier_rfq_id,
                SupplierRfq.rfq_id == rfq_id,
            )
        )
        supplier_rfq = result.scalar_one_or_none()
        if supplier_rfq is None:
            raise NotFoundException(
                f"Supplier invitation {supplier_rfq_id} not found on RFQ {rfq_id}"
            )
        return supplier_rfq
