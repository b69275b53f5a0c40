"""Price comparison across supplier quotes, per RFQ line item.

The best price for a line item is the lowest matched ``total_price``. Every
other bid is classified by how far it sits above that best price:

    diff_pct = (price - best) / best * 100
    diff_pct > 20         -> HIGH
    10 < diff_pct <= 20   -> MODERATE
    diff_pct <= 10        -> COMPETITIVE

Ties on the best price go to the first quote in the order supplied; use
``order_quotes_for_comparison`` to get a stable, submission-time order.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from quoteroom.models.enums import PriceClassification
from quoteroom.models.quote import Quote
from quoteroom.models.rfq_line_item import RfqLineItem
from quoteroom.modules.rfq.constants import (
    HIGH_DEVIATION_PCT,
    MODERATE_DEVIATION_PCT,
    MONEY_QUANTUM,
)
from quoteroom.modules.rfq.matching import LineItemMatch, match_line_item
from quoteroom.modules.rfq.schemas import BestPrice, BidCell, BidMatrixRow

_HUNDRED = Decimal("100")
_FAR_PAST = datetime.min.replace(tzinfo=UTC)


def order_quotes_for_comparison(quotes: Iterable[Quote]) -> list[Quote]:
    """Sort quotes by submission time; unsubmitted quotes go last."""
    return sorted(
        quotes,
        key=lambda q: (q.submitted_at is None, q.submitted_at or _FAR_PAST),
    )


def _best_match(matches: Sequence[LineItemMatch]) -> LineItemMatch | None:
    best: LineItemMatch | None = None
    for match in matches:
        # Strict < keeps the earliest quote on ties
        if best is None or match.total_price < best.total_price:
            best = match
    return best


def _to_best_price(rfq_line_item_id: uuid.UUID, match: LineItemMatch) -> BestPrice:
    return BestPrice(
        rfq_line_item_id=rfq_line_item_id,
        quote_id=match.quote.id,
        quote_line_item_id=match.line_item.id,
        unit_price=match.line_item.unit_price,
        total_price=match.line_item.total_price,
    )


def best_price(rfq_line_item_id: uuid.UUID, quotes: Iterable[Quote]) -> BestPrice | None:
    """Lowest line total offered for ``rfq_line_item_id``, or None with no bids."""
    match = _best_match(match_line_item(rfq_line_item_id, quotes))
    if match is None:
        return None
    return _to_best_price(rfq_line_item_id, match)


def _raw_deviation(price: Decimal, best: Decimal) -> Decimal | None:
    if best == 0:
        return Decimal("0") if price == 0 else None
    return (Decimal(price) - Decimal(best)) / Decimal(best) * _HUNDRED


def price_deviation_pct(price: Decimal, best: Decimal) -> Decimal | None:
    """Percentage by which ``price`` exceeds ``best``, rounded to cents.

    Returns None when ``best`` is zero and ``price`` is not, since the ratio
    is unbounded there.
    """
    diff = _raw_deviation(price, best)
    if diff is None:
        return None
    return diff.quantize(MONEY_QUANTUM)


def classify_price(price: Decimal, best: Decimal, is_best: bool = False) -> PriceClassification:
    """Band a price against the best price for the same line item."""
    if is_best:
        return PriceClassification.BEST
    diff = _raw_deviation(price, best)
    if diff is None or diff > HIGH_DEVIATION_PCT:
        return PriceClassification.HIGH
    if diff > MODERATE_DEVIATION_PCT:
        return PriceClassification.MODERATE
    return PriceClassification.COMPETITIVE


def classify(
    quote_id: uuid.UUID,
    rfq_line_item_id: uuid.UUID,
    quotes: Sequence[Quote],
) -> PriceClassification | None:
    """Classification of one quote's bid on one line item.

    Returns None when the quote did not bid on the line item.
    """
    matches = match_line_item(rfq_line_item_id, quotes)
    own = next((m for m in matches if m.quote_id == quote_id), None)
    if own is None:
        return None
    best = _best_match(matches)
    return classify_price(
        own.total_price,
        best.total_price,
        is_best=best.quote_id == quote_id,
    )


def compare_line_item(rfq_line_item: RfqLineItem, quotes: Sequence[Quote]) -> BidMatrixRow:
    """Best price plus one cell per quote for a single RFQ line item."""
    matches = match_line_item(rfq_line_item.id, quotes)
    best = _best_match(matches)
    by_quote = {m.quote_id: m for m in matches}

    cells: list[BidCell] = []
    for quote in quotes:
        match = by_quote.get(quote.id)
        if match is None:
            cells.append(BidCell(quote_id=quote.id, no_bid=True))
            continue
        line = match.line_item
        cells.append(
            BidCell(
                quote_id=quote.id,
                quote_line_item_id=line.id,
                unit_price=line.unit_price,
                total_price=line.total_price,
                lead_time_days=line.lead_time_days,
                availability=line.availability,
                classification=classify_price(
                    line.total_price,
                    best.total_price,
                    is_best=match is best,
                ),
                deviation_pct=price_deviation_pct(line.total_price, best.total_price),
            )
        )

    return BidMatrixRow(
        rfq_line_item_id=rfq_line_item.id,
        description=rfq_line_item.description,
        quantity=rfq_line_item.quantity,
        order_index=rfq_line_item.order_index,
        best=_to_best_price(rfq_line_item.id, best) if best is not None else None,
        bid_count=len(matches),
        cells=cells,
    )


def build_bid_matrix(
    rfq_line_items: Iterable[RfqLineItem], quotes: Sequence[Quote]
) -> list[BidMatrixRow]:
    """One comparison row per RFQ line item, in ``order_index`` order."""
    ordered_items = sorted(rfq_line_items, key=lambda item: item.order_index)
    return [compare_line_item(item, quotes) for item in ordered_items]
