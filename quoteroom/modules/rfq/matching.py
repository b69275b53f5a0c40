"""Line-item matching between supplier quotes and the RFQ they answer.

Every function here works on in-memory snapshots (ORM instances with their
``line_items`` loaded, or any object exposing the same attributes) and never
touches the database.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from quoteroom.models.quote import Quote
from quoteroom.models.quote_line_item import QuoteLineItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItemMatch:
    """A quote paired with the line it offered for one RFQ line item."""

    quote: Quote
    line_item: QuoteLineItem

    @property
    def quote_id(self) -> uuid.UUID:
        return self.quote.id

    @property
    def total_price(self) -> Decimal:
        return self.line_item.total_price


def find_quote_line(quote: Quote, rfq_line_item_id: uuid.UUID) -> QuoteLineItem | None:
    """Return the first line on ``quote`` that references ``rfq_line_item_id``.

    Later lines for the same RFQ line item are duplicates: they are logged and
    ignored, never summed into the first one.
    """
    found: QuoteLineItem | None = None
    for line in quote.line_items:
        if line.rfq_line_item_id != rfq_line_item_id:
            continue
        if found is None:
            found = line
        else:
            logger.warning(
                "Quote %s has duplicate line %s for RFQ line item %s; using %s",
                quote.id, line.id, rfq_line_item_id, found.id,
            )
    return found


def match_line_item(
    rfq_line_item_id: uuid.UUID, quotes: Iterable[Quote]
) -> list[LineItemMatch]:
    """Resolve, per quote, the line that answers one RFQ line item.

    Quotes without a matching line are simply absent from the result. Order
    follows the order of ``quotes``.
    """
    matches: list[LineItemMatch] = []
    for quote in quotes:
        line = find_quote_line(quote, rfq_line_item_id)
        if line is not None:
            matches.append(LineItemMatch(quote, line))
    return matches


def find_orphan_line_items(
    quote: Quote, rfq_line_item_ids: Iterable[uuid.UUID]
) -> list[QuoteLineItem]:
    """Lines on ``quote`` whose reference matches no RFQ line item."""
    known = set(rfq_line_item_ids)
    return [line for line in quote.line_items if line.rfq_line_item_id not in known]


def find_duplicate_line_items(quote: Quote) -> list[QuoteLineItem]:
    """Lines that repeat an RFQ line item already answered earlier on ``quote``."""
    seen: set[uuid.UUID] = set()
    duplicates: list[QuoteLineItem] = []
    for line in quote.line_items:
        if line.rfq_line_item_id in seen:
            duplicates.append(line)
        else:
            seen.add(line.rfq_line_item_id)
    return duplicates
