"""RFQ-wide quote metrics."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from quoteroom.models.quote import Quote
from quoteroom.modules.rfq.constants import COMPARABLE_QUOTE_STATUSES, MONEY_QUANTUM
from quoteroom.modules.rfq.schemas import QuoteMetrics


def valid_quotes(quotes: Iterable[Quote]) -> list[Quote]:
    """Quotes that take part in comparison: SUBMITTED or ACCEPTED only."""
    return [q for q in quotes if q.status in COMPARABLE_QUOTE_STATUSES]


def aggregate(quotes: Iterable[Quote]) -> QuoteMetrics | None:
    """Lowest, highest and mean total plus lead-time range over valid quotes.

    Quotes without a lead time are left out of the lead-time range rather
    than counted as zero. Returns None when there is no valid quote.
    """
    candidates = valid_quotes(quotes)
    if not candidates:
        return None

    totals = [Decimal(q.total_amount) for q in candidates]
    lead_times = [q.lead_time_days for q in candidates if q.lead_time_days is not None]
    average = (sum(totals, Decimal("0")) / len(totals)).quantize(MONEY_QUANTUM)

    return QuoteMetrics(
        quote_count=len(candidates),
        lowest_total=min(totals),
        highest_total=max(totals),
        average_total=average,
        shortest_lead_time_days=min(lead_times) if lead_times else None,
        longest_lead_time_days=max(lead_times) if lead_times else None,
    )
