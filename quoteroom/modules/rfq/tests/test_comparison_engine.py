"""Tests for the pure comparison engine: matching, price bands, bid matrix, metrics."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from quoteroom.models import PriceClassification, Quote, QuoteLineItem, QuoteStatus, RfqLineItem
from quoteroom.modules.rfq.aggregation import aggregate, valid_quotes
from quoteroom.modules.rfq.comparison import (
    best_price,
    build_bid_matrix,
    classify,
    classify_price,
    compare_line_item,
    order_quotes_for_comparison,
    price_deviation_pct,
)
from quoteroom.modules.rfq.matching import (
    find_duplicate_line_items,
    find_orphan_line_items,
    match_line_item,
)

RFQ_ID = uuid.uuid4()
T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _item(description: str = "Walnut side table", quantity: int = 2, order_index: int = 0) -> RfqLineItem:
    return RfqLineItem(
        id=uuid.uuid4(),
        rfq_id=RFQ_ID,
        description=description,
        quantity=quantity,
        order_index=order_index,
    )


def _line(item: RfqLineItem, total: str, lead_time_days: int | None = None) -> QuoteLineItem:
    total_price = Decimal(total)
    return QuoteLineItem(
        id=uuid.uuid4(),
        rfq_line_item_id=item.id,
        unit_price=total_price / item.quantity,
        quantity=item.quantity,
        total_price=total_price,
        lead_time_days=lead_time_days,
    )


def _quote(
    *lines: QuoteLineItem,
    total: str | None = None,
    status: QuoteStatus = QuoteStatus.SUBMITTED,
    lead_time_days: int | None = None,
    submitted_at: datetime | None = T0,
) -> Quote:
    total_amount = Decimal(total) if total is not None else sum(
        (line.total_price for line in lines), Decimal("0")
    )
    return Quote(
        id=uuid.uuid4(),
        supplier_rfq_id=uuid.uuid4(),
        quote_number="SQ-1",
        version=1,
        status=status,
        total_amount=total_amount,
        shipping_cost=Decimal("0"),
        lead_time_days=lead_time_days,
        submitted_at=submitted_at,
        line_items=list(lines),
    )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


class TestMatchLineItem:
    def test_one_match_per_bidding_quote(self) -> None:
        item = _item()
        other = _item("Linen curtains")
        q1 = _quote(_line(item, "100"))
        q2 = _quote(_line(other, "50"))
        q3 = _quote(_line(item, "120"), _line(other, "40"))

        matches = match_line_item(item.id, [q1, q2, q3])

        assert [m.quote_id for m in matches] == [q1.id, q3.id]
        assert matches[1].total_price == Decimal("120")

    def test_matches_are_immutable(self) -> None:
        item = _item()
        line = _line(item, "100")
        (match,) = match_line_item(item.id, [_quote(line)])

        assert match.line_item is line
        with pytest.raises(dataclasses.FrozenInstanceError):
            match.line_item = _line(item, "1")

    def test_duplicate_lines_first_wins_and_is_logged(self, caplog) -> None:
        item = _item()
        first = _line(item, "100")
        second = _line(item, "10")
        quote = _quote(first, second)

        with caplog.at_level(logging.WARNING, logger="quoteroom.modules.rfq.matching"):
            matches = match_line_item(item.id, [quote])

        assert len(matches) == 1
        assert matches[0].line_item is first
        assert "duplicate" in caplog.text
        assert find_duplicate_line_items(quote) == [second]

    def test_orphan_lines_are_reported(self) -> None:
        item = _item()
        stray = QuoteLineItem(
            id=uuid.uuid4(),
            rfq_line_item_id=uuid.uuid4(),
            unit_price=Decimal("5"),
            quantity=1,
            total_price=Decimal("5"),
        )
        quote = _quote(_line(item, "100"), stray)

        assert find_orphan_line_items(quote, [item.id]) == [stray]


# ---------------------------------------------------------------------------
# Price comparison
# ---------------------------------------------------------------------------


class TestPriceComparison:
    def test_best_moderate_high_scenario(self) -> None:
        item = _item()
        qa = _quote(_line(item, "100"))
        qb = _quote(_line(item, "115"))
        qc = _quote(_line(item, "140"))
        quotes = [qa, qb, qc]

        best = best_price(item.id, quotes)
        assert best.quote_id == qa.id
        assert best.total_price == Decimal("100")

        assert classify(qa.id, item.id, quotes) == PriceClassification.BEST
        assert classify(qb.id, item.id, quotes) == PriceClassification.MODERATE
        assert classify(qc.id, item.id, quotes) == PriceClassification.HIGH

    def test_boundaries_are_strictly_greater_than(self) -> None:
        best = Decimal("100")
        assert classify_price(Decimal("110"), best) == PriceClassification.COMPETITIVE
        assert classify_price(Decimal("110.01"), best) == PriceClassification.MODERATE
        assert classify_price(Decimal("120"), best) == PriceClassification.MODERATE
        assert classify_price(Decimal("120.01"), best) == PriceClassification.HIGH

    def test_no_bids_gives_no_best_price(self) -> None:
        item = _item()
        other = _item("Brass floor lamp")
        quote = _quote(_line(other, "80"))

        assert best_price(item.id, [quote]) is None
        assert best_price(item.id, []) is None

    def test_quote_without_bid_has_no_classification(self) -> None:
        item = _item()
        other = _item("Brass floor lamp")
        bidder = _quote(_line(item, "100"))
        non_bidder = _quote(_line(other, "80"))

        assert classify(non_bidder.id, item.id, [bidder, non_bidder]) is None

    def test_tie_goes_to_first_quote_in_order(self) -> None:
        item = _item()
        early = _quote(_line(item, "100"), submitted_at=T0)
        late = _quote(_line(item, "100"), submitted_at=T0 + timedelta(hours=1))
        ordered = order_quotes_for_comparison([late, early])

        assert best_price(item.id, ordered).quote_id == early.id
        assert classify(early.id, item.id, ordered) == PriceClassification.BEST
        assert classify(late.id, item.id, ordered) == PriceClassification.COMPETITIVE

    def test_zero_best_price(self) -> None:
        assert classify_price(Decimal("5"), Decimal("0")) == PriceClassification.HIGH
        assert classify_price(Decimal("0"), Decimal("0")) == PriceClassification.COMPETITIVE
        assert price_deviation_pct(Decimal("5"), Decimal("0")) is None

    def test_deviation_pct_is_rounded_to_cents(self) -> None:
        assert price_deviation_pct(Decimal("115"), Decimal("100")) == Decimal("15.00")
        assert price_deviation_pct(Decimal("100"), Decimal("300")) == Decimal("-66.67")


class TestOrderQuotes:
    def test_unsubmitted_quotes_sort_last(self) -> None:
        q_late = _quote(submitted_at=T0 + timedelta(days=1))
        q_none = _quote(submitted_at=None)
        q_early = _quote(submitted_at=T0)

        ordered = order_quotes_for_comparison([q_late, q_none, q_early])
        assert ordered == [q_early, q_late, q_none]


# ---------------------------------------------------------------------------
# Bid matrix
# ---------------------------------------------------------------------------


class TestBidMatrix:
    def test_rows_follow_order_index_and_mark_no_bids(self) -> None:
        chair = _item("Dining chair", quantity=6, order_index=1)
        table = _item("Oak dining table", quantity=1, order_index=0)
        qa = _quote(_line(table, "2000"), _line(chair, "1200"))
        qb = _quote(_line(table, "2500"))

        rows = build_bid_matrix([chair, table], [qa, qb])

        assert [r.rfq_line_item_id for r in rows] == [table.id, chair.id]

        table_row, chair_row = rows
        assert table_row.best.quote_id == qa.id
        assert table_row.bid_count == 2
        assert [c.classification for c in table_row.cells] == [
            PriceClassification.BEST,
            PriceClassification.HIGH,
        ]
        assert table_row.cells[1].deviation_pct == Decimal("25.00")

        assert chair_row.bid_count == 1
        no_bid = chair_row.cells[1]
        assert no_bid.quote_id == qb.id
        assert no_bid.no_bid is True
        assert no_bid.total_price is None
        assert no_bid.classification is None

    def test_line_item_without_any_bid(self) -> None:
        item = _item()
        row = compare_line_item(item, [_quote(), _quote()])

        assert row.best is None
        assert row.bid_count == 0
        assert all(cell.no_bid for cell in row.cells)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestAggregate:
    def test_no_quotes(self) -> None:
        assert aggregate([]) is None

    def test_only_invalid_quotes(self) -> None:
        quotes = [
            _quote(total="100", status=QuoteStatus.DRAFT),
            _quote(total="90", status=QuoteStatus.REVISED),
            _quote(total="80", status=QuoteStatus.REJECTED),
        ]
        assert valid_quotes(quotes) == []
        assert aggregate(quotes) is None

    def test_single_quote(self) -> None:
        metrics = aggregate([_quote(total="250.50", lead_time_days=21)])

        assert metrics.quote_count == 1
        assert metrics.lowest_total == Decimal("250.50")
        assert metrics.highest_total == Decimal("250.50")
        assert metrics.average_total == Decimal("250.50")
        assert metrics.shortest_lead_time_days == 21
        assert metrics.longest_lead_time_days == 21

    def test_mixed_quotes(self) -> None:
        quotes = [
            _quote(total="100", lead_time_days=14),
            _quote(total="115", status=QuoteStatus.ACCEPTED),
            _quote(total="140", lead_time_days=30),
            _quote(total="10", status=QuoteStatus.REVISED, lead_time_days=1),
        ]
        metrics = aggregate(quotes)

        assert metrics.quote_count == 3
        assert metrics.lowest_total == Decimal("100")
        assert metrics.highest_total == Decimal("140")
        assert metrics.average_total == Decimal("118.33")
        # Quotes without a lead time are left out, not counted as zero
        assert metrics.shortest_lead_time_days == 14
        assert metrics.longest_lead_time_days == 30

    def test_no_lead_times(self) -> None:
        metrics = aggregate([_quote(total="100"), _quote(total="200")])
        assert metrics.shortest_lead_time_days is None
        assert metrics.longest_lead_time_days is None
