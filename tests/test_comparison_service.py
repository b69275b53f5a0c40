"""Unit tests for ComparisonService."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from quoteroom.models import (
    LineItemIssueKind,
    PriceClassification,
    Quote,
    QuoteLineItem,
    QuoteStatus,
    RfqLineItem,
)
from quoteroom.models.enums import RfqStatus
from quoteroom.modules.rfq.comparison_service import ComparisonService

SUBMITTED_AT = datetime(2026, 6, 2, 10, 0, tzinfo=UTC)


@pytest.fixture
def comparison_service(mock_db):
    return ComparisonService(mock_db)


def _rfq_with_items(*items):
    rfq = MagicMock()
    rfq.id = uuid.uuid4()
    rfq.status = RfqStatus.FULLY_QUOTED
    rfq.response_deadline = None
    rfq.valid_until = None
    rfq.line_items = list(items)
    return rfq


def _item(description, order_index):
    return RfqLineItem(id=uuid.uuid4(), description=description, quantity=1, order_index=order_index)


def _quote(total_lines, status=QuoteStatus.SUBMITTED, minutes=0, lead_time_days=None):
    lines = [
        QuoteLineItem(
            id=uuid.uuid4(),
            rfq_line_item_id=ref,
            unit_price=Decimal(price),
            quantity=1,
            total_price=Decimal(price),
        )
        for ref, price in total_lines
    ]
    return Quote(
        id=uuid.uuid4(),
        supplier_rfq_id=uuid.uuid4(),
        quote_number=f"SQ-{minutes}",
        version=1,
        status=status,
        total_amount=sum((line.total_price for line in lines), Decimal("0")),
        shipping_cost=Decimal("0"),
        lead_time_days=lead_time_days,
        submitted_at=SUBMITTED_AT + timedelta(minutes=minutes),
        line_items=lines,
    )


def _rfq_result(rfq):
    result = MagicMock()
    result.unique.return_value.scalar_one_or_none.return_value = rfq
    return result


def _quotes_result(quotes):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(quotes)
    return result


class TestGetComparison:
    @pytest.mark.asyncio
    async def test_matrix_metrics_and_issues(self, comparison_service, mock_db):
        desk = _item("Writing desk", 0)
        chair = _item("Desk chair", 1)
        rfq = _rfq_with_items(chair, desk)

        q_low = _quote([(desk.id, "100"), (chair.id, "60")], minutes=5, lead_time_days=20)
        q_mid = _quote([(desk.id, "115")], minutes=1, lead_time_days=10)
        q_high = _quote([(desk.id, "140"), (uuid.uuid4(), "5")], minutes=9)
        q_old = _quote([(desk.id, "1")], status=QuoteStatus.REVISED)
        mock_db.execute.side_effect = [
            _rfq_result(rfq),
            _quotes_result([q_low, q_mid, q_high, q_old]),
        ]

        comparison = await comparison_service.get_comparison(rfq.id)

        assert comparison.rfq_id == rfq.id
        assert [q.id for q in comparison.quotes] == [q_mid.id, q_low.id, q_high.id]

        desk_row, chair_row = comparison.rows
        assert desk_row.rfq_line_item_id == desk.id
        assert desk_row.best.quote_id == q_low.id
        assert {c.quote_id: c.classification for c in desk_row.cells} == {
            q_mid.id: PriceClassification.MODERATE,
            q_low.id: PriceClassification.BEST,
            q_high.id: PriceClassification.HIGH,
        }
        assert chair_row.bid_count == 1

        assert comparison.metrics.quote_count == 3
        assert comparison.metrics.lowest_total == Decimal("115")
        assert comparison.metrics.highest_total == Decimal("160")
        assert comparison.metrics.shortest_lead_time_days == 10
        assert comparison.metrics.longest_lead_time_days == 20

        (issue,) = comparison.issues
        assert issue.quote_id == q_high.id
        assert issue.kind == LineItemIssueKind.ORPHAN

    @pytest.mark.asyncio
    async def test_duplicate_lines_are_reported(self, comparison_service, mock_db):
        lamp = _item("Floor lamp", 0)
        rfq = _rfq_with_items(lamp)
        quote = _quote([(lamp.id, "80"), (lamp.id, "75")])
        mock_db.execute.side_effect = [_rfq_result(rfq), _quotes_result([quote])]

        comparison = await comparison_service.get_comparison(rfq.id)

        (issue,) = comparison.issues
        assert issue.kind == LineItemIssueKind.DUPLICATE
        assert issue.quote_line_item_id == quote.line_items[1].id
        (row,) = comparison.rows
        assert row.best.total_price == Decimal("80")
        assert comparison.model_dump(mode="json")["issues"][0]["kind"] == "DUPLICATE"

    @pytest.mark.asyncio
    async def test_no_quotes_yet(self, comparison_service, mock_db):
        rfq = _rfq_with_items(_item("Pendant light", 0))
        mock_db.execute.side_effect = [_rfq_result(rfq), _quotes_result([])]

        comparison = await comparison_service.get_comparison(rfq.id)

        assert comparison.metrics is None
        assert comparison.quotes == []
        (row,) = comparison.rows
        assert row.best is None
        assert row.cells == []
