"""ClientQuoteService: turns accepted supplier quotes into a client quote."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quoteroom.config import settings
from quoteroom.exceptions import (
    InvalidTransitionException,
    NoAcceptedQuotesException,
    NotFoundException,
    ValidationException,
)
from quoteroom.models.client_quote import ClientQuote
from quoteroom.models.client_quote_line_item import ClientQuoteLineItem
from quoteroom.models.enums import ClientQuoteStatus, QuoteStatus
from quoteroom.models.quote import Quote
from quoteroom.modules.events.outbox_service import OutboxService
from quoteroom.modules.rfq.constants import (
    EVENT_CLIENT_QUOTE_CREATED,
    MONEY_QUANTUM,
    TERMINAL_STATUSES,
)
from quoteroom.modules.rfq.quote_service import QuoteService
from quoteroom.modules.rfq.rfq_service import RfqService

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")


def sell_price(cost_unit_price: Decimal, markup_percent: Decimal) -> Decimal:
    """Client unit price for a supplier unit cost, rounded to cents."""
    return (cost_unit_price * (1 + markup_percent / _HUNDRED)).quantize(MONEY_QUANTUM)


class ClientQuoteService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _generate_quote_number(self) -> str:
        """Generate CQ-YYYY-NNNNN using a DB sequence."""
        result = await self.db.execute(text("SELECT nextval('client_quote_number_seq')"))
        seq_val = result.scalar()
        year = datetime.now(UTC).year
        return f"{settings.client_quote_number_prefix}-{year}-{seq_val:05d}"

    async def create_client_quote(
        self,
        rfq_id: uuid.UUID,
        accepted_quote_ids: list[uuid.UUID] | None = None,
        title: str | None = None,
        description: str | None = None,
        markup_percent: Decimal | None = None,
        line_markups: dict[uuid.UUID, Decimal] | None = None,
        valid_until: datetime | None = None,
        created_by: uuid.UUID | None = None,
    ) -> ClientQuote:
        """Create a client quote from the RFQ's ACCEPTED supplier quotes.

        With ``accepted_quote_ids`` omitted every accepted quote is used;
        otherwise each id must name an ACCEPTED quote of this RFQ. Each
        supplier line becomes one client line priced at cost plus markup
        (``line_markups`` overrides the default per RFQ line item).

        The RFQ and the supplier quotes are not modified.
        """
        rfq = await RfqService(self.db).get_rfq(rfq_id)
        if rfq.status in TERMINAL_STATUSES:
            raise InvalidTransitionException(
                f"Cannot create a client quote for RFQ in status '{rfq.status.value}'"
            )

        accepted = await QuoteService(self.db).list_quotes_for_rfq(
            rfq_id, status=QuoteStatus.ACCEPTED
        )
        if not accepted:
            raise NoAcceptedQuotesException(
                f"RFQ {rfq_id} has no accepted quotes to build a client quote from"
            )
        selected = self._select_quotes(accepted, accepted_quote_ids)

        default_markup = (
            Decimal(str(markup_percent))
            if markup_percent is not None
            else Decimal(str(settings.default_markup_percent))
        )
        overrides = {k: Decimal(str(v)) for k, v in (line_markups or {}).items()}
        if any(value < 0 for value in overrides.values()) or default_markup < 0:
            raise ValidationException("Markup percent must not be negative")

        rfq_items = {item.id: item for item in rfq.line_items}
        lines: list[ClientQuoteLineItem] = []
        for quote in selected:
            for supplier_line in quote.line_items:
                rfq_item = rfq_items.get(supplier_line.rfq_line_item_id)
                if rfq_item is None:
                    logger.warning(
                        "Skipping orphan line %s on accepted quote %s",
                        supplier_line.id, quote.id,
                    )
                    continue
                markup = overrides.get(rfq_item.id, default_markup)
                unit = sell_price(Decimal(supplier_line.unit_price), markup)
                lines.append(
                    ClientQuoteLineItem(
                        rfq_line_item_id=rfq_item.id,
                        supplier_quote_id=quote.id,
                        supplier_quote_line_item_id=supplier_line.id,
                        description=rfq_item.description,
                        quantity=supplier_line.quantity,
                        cost_unit_price=supplier_line.unit_price,
                        markup_percent=markup,
                        sell_unit_price=unit,
                        total_price=(unit * supplier_line.quantity).quantize(MONEY_QUANTUM),
                        order_index=rfq_item.order_index,
                    )
                )
        lines.sort(key=lambda line: line.order_index)

        subtotal = sum((line.total_price for line in lines), Decimal("0"))
        shipping = sum((Decimal(q.shipping_cost or 0) for q in selected), Decimal("0"))

        quote_number = await self._generate_quote_number()
        client_quote = ClientQuote(
            quote_number=quote_number,
            rfq_id=rfq.id,
            project_id=rfq.project_id,
            title=title or f"Client quote for {rfq.title}",
            description=description,
            status=ClientQuoteStatus.DRAFT,
            supplier_quote_ids=[q.id for q in selected],
            subtotal=subtotal,
            shipping_cost=shipping,
            total_amount=subtotal + shipping,
            valid_until=valid_until,
            created_by=created_by,
            line_items=lines,
        )
        self.db.add(client_quote)
        await self.db.flush()

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_CLIENT_QUOTE_CREATED,
            aggregate_type="client_quote",
            aggregate_id=str(client_quote.id),
            payload={
                "client_quote_id": str(client_quote.id),
                "quote_number": quote_number,
                "rfq_id": str(rfq.id),
                "project_id": str(rfq.project_id),
                "supplier_quote_ids": [str(q.id) for q in selected],
                "total_amount": str(client_quote.total_amount),
            },
        )
        logger.info(
            "Created client quote %s for RFQ %s from %d accepted quote(s) (total: %s)",
            quote_number, rfq_id, len(selected), client_quote.total_amount,
        )
        return client_quote

    @staticmethod
    def _select_quotes(
        accepted: list[Quote], accepted_quote_ids: list[uuid.UUID] | None
    ) -> list[Quote]:
        if accepted_quote_ids is None:
            return accepted
        requested = list(dict.fromkeys(accepted_quote_ids))
        if not requested:
            raise NoAcceptedQuotesException("No accepted quotes were selected")

        by_id = {q.id: q for q in accepted}
        unknown = [qid for qid in requested if qid not in by_id]
        if unknown:
            raise ValidationException(
                "Only ACCEPTED quotes of this RFQ can be used for a client quote",
                details=[
                    {"field": "accepted_quote_ids", "message": f"{qid} is not an accepted quote"}
                    for qid in unknown
                ],
            )
        return [by_id[qid] for qid in requested]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_client_quote(self, client_quote_id: uuid.UUID) -> ClientQuote:
        result = await self.db.execute(
            select(ClientQuote)
            .options(selectinload(ClientQuote.line_items))
            .where(ClientQuote.id == client_quote_id)
        )
        client_quote = result.scalar_one_or_none()
        if client_quote is None:
            raise NotFoundException(f"Client quote {client_quote_id} not found")
        return client_quote

    async def list_client_quotes(self, rfq_id: uuid.UUID) -> list[ClientQuote]:
        result = await self.db.execute(
            select(ClientQuote)
            .options(selectinload(ClientQuote.line_items))
            .where(ClientQuote.rfq_id == rfq_id)
            .order_by(ClientQuote.created_at.asc())
        )
        return list(result.scalars().all())
