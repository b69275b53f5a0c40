"""Unit tests for ClientQuoteService."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from quoteroom.exceptions import (
    InvalidTransitionException,
    NoAcceptedQuotesException,
    NotFoundException,
    ValidationException,
)
from quoteroom.models import ClientQuote, EventOutbox
from quoteroom.models.enums import ClientQuoteStatus, QuoteStatus, RfqStatus
from quoteroom.modules.client_quote.service import ClientQuoteService, sell_price


@pytest.fixture
def client_quote_service(mock_db):
    return ClientQuoteService(mock_db)


def _make_rfq_item(description, order_index):
    item = MagicMock()
    item.id = uuid.uuid4()
    item.description = description
    item.order_index = order_index
    return item


def _make_rfq(status=RfqStatus.QUOTE_ACCEPTED, line_items=()):
    rfq = MagicMock()
    rfq.id = uuid.uuid4()
    rfq.project_id = uuid.uuid4()
    rfq.title = "Penthouse living room"
    rfq.status = status
    rfq.response_deadline = None
    rfq.valid_until = None
    rfq.line_items = list(line_items)
    return rfq


def _make_supplier_line(rfq_line_item_id, unit_price, quantity):
    line = MagicMock()
    line.id = uuid.uuid4()
    line.rfq_line_item_id = rfq_line_item_id
    line.unit_price = Decimal(unit_price)
    line.quantity = quantity
    line.total_price = Decimal(unit_price) * quantity
    return line


def _make_accepted_quote(*lines, shipping="0"):
    quote = MagicMock()
    quote.id = uuid.uuid4()
    quote.status = QuoteStatus.ACCEPTED
    quote.shipping_cost = Decimal(shipping)
    quote.line_items = list(lines)
    return quote


def _make_rfq_result(rfq):
    result = MagicMock()
    result.unique.return_value.scalar_one_or_none.return_value = rfq
    return result


def _make_scalars_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    return result


def _make_seq_result(value):
    result = MagicMock()
    result.scalar.return_value = value
    return result


@pytest.fixture
def furnished_rfq():
    """An accepted RFQ with two line items, each won by a different supplier."""
    sofa = _make_rfq_item("Three-seat sofa, boucle", order_index=1)
    lamp = _make_rfq_item("Arc floor lamp", order_index=0)
    rfq = _make_rfq(line_items=[sofa, lamp])
    sofa_quote = _make_accepted_quote(_make_supplier_line(sofa.id, "100.00", 2), shipping="15")
    lamp_quote = _make_accepted_quote(_make_supplier_line(lamp.id, "80.00", 1))
    return rfq, sofa, lamp, sofa_quote, lamp_quote


class TestSellPrice:
    def test_rounds_to_cents(self):
        assert sell_price(Decimal("19.99"), Decimal("15")) == Decimal("22.99")

    def test_zero_markup(self):
        assert sell_price(Decimal("42.50"), Decimal("0")) == Decimal("42.50")


class TestCreateClientQuote:
    @pytest.mark.asyncio
    async def test_builds_lines_with_markup(self, client_quote_service, mock_db, furnished_rfq):
        rfq, sofa, lamp, sofa_quote, lamp_quote = furnished_rfq
        mock_db.execute.side_effect = [
            _make_rfq_result(rfq),
            _make_scalars_result([sofa_quote, lamp_quote]),
            _make_seq_result(3),
        ]

        client_quote = await client_quote_service.create_client_quote(
            rfq.id,
            markup_percent=Decimal("25"),
            line_markups={lamp.id: Decimal("10")},
        )

        assert isinstance(client_quote, ClientQuote)
        assert client_quote.quote_number == f"CQ-{datetime.now(UTC).year}-00003"
        assert client_quote.status == ClientQuoteStatus.DRAFT
        assert client_quote.title == "Client quote for Penthouse living room"

        lamp_line, sofa_line = client_quote.line_items
        assert lamp_line.rfq_line_item_id == lamp.id
        assert lamp_line.markup_percent == Decimal("10")
        assert lamp_line.sell_unit_price == Decimal("88.00")
        assert lamp_line.total_price == Decimal("88.00")
        assert sofa_line.sell_unit_price == Decimal("125.00")
        assert sofa_line.total_price == Decimal("250.00")
        assert sofa_line.supplier_quote_id == sofa_quote.id

        assert client_quote.subtotal == Decimal("338.00")
        assert client_quote.shipping_cost == Decimal("15")
        assert client_quote.total_amount == Decimal("353.00")
        assert client_quote.supplier_quote_ids == [sofa_quote.id, lamp_quote.id]
        events = [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], EventOutbox)]
        assert [e.event_type for e in events] == ["client_quote.created"]

    @pytest.mark.asyncio
    async def test_default_markup_from_settings(self, client_quote_service, mock_db, furnished_rfq):
        rfq, _, _, sofa_quote, _ = furnished_rfq
        mock_db.execute.side_effect = [
            _make_rfq_result(rfq),
            _make_scalars_result([sofa_quote]),
            _make_seq_result(1),
        ]

        client_quote = await client_quote_service.create_client_quote(rfq.id)

        (line,) = client_quote.line_items
        assert line.markup_percent == Decimal("25.0")
        assert line.sell_unit_price == Decimal("125.00")

    @pytest.mark.asyncio
    async def test_selected_subset_of_accepted_quotes(
        self, client_quote_service, mock_db, furnished_rfq
    ):
        rfq, _, lamp, sofa_quote, lamp_quote = furnished_rfq
        mock_db.execute.side_effect = [
            _make_rfq_result(rfq),
            _make_scalars_result([sofa_quote, lamp_quote]),
            _make_seq_result(2),
        ]

        client_quote = await client_quote_service.create_client_quote(
            rfq.id, accepted_quote_ids=[lamp_quote.id], markup_percent=Decimal("0")
        )

        assert [line.rfq_line_item_id for line in client_quote.line_items] == [lamp.id]
        assert client_quote.total_amount == Decimal("80.00")

    @pytest.mark.asyncio
    async def test_no_accepted_quotes_raises(self, client_quote_service, mock_db):
        rfq = _make_rfq(status=RfqStatus.FULLY_QUOTED)
        mock_db.execute.side_effect = [_make_rfq_result(rfq), _make_scalars_result([])]

        with pytest.raises(NoAcceptedQuotesException):
            await client_quote_service.create_client_quote(rfq.id)
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_selection_raises(self, client_quote_service, mock_db, furnished_rfq):
        rfq, _, _, sofa_quote, _ = furnished_rfq
        mock_db.execute.side_effect = [_make_rfq_result(rfq), _make_scalars_result([sofa_quote])]

        with pytest.raises(NoAcceptedQuotesException):
            await client_quote_service.create_client_quote(rfq.id, accepted_quote_ids=[])

    @pytest.mark.asyncio
    async def test_unaccepted_quote_id_raises(self, client_quote_service, mock_db, furnished_rfq):
        rfq, _, _, sofa_quote, _ = furnished_rfq
        mock_db.execute.side_effect = [_make_rfq_result(rfq), _make_scalars_result([sofa_quote])]

        with pytest.raises(ValidationException, match="Only ACCEPTED"):
            await client_quote_service.create_client_quote(
                rfq.id, accepted_quote_ids=[uuid.uuid4()]
            )

    @pytest.mark.asyncio
    async def test_negative_markup_raises(self, client_quote_service, mock_db, furnished_rfq):
        rfq, _, _, sofa_quote, _ = furnished_rfq
        mock_db.execute.side_effect = [_make_rfq_result(rfq), _make_scalars_result([sofa_quote])]

        with pytest.raises(ValidationException, match="Markup"):
            await client_quote_service.create_client_quote(rfq.id, markup_percent=Decimal("-5"))

    @pytest.mark.asyncio
    async def test_cancelled_rfq_raises(self, client_quote_service, mock_db):
        rfq = _make_rfq(status=RfqStatus.CANCELLED)
        mock_db.execute.return_value = _make_rfq_result(rfq)

        with pytest.raises(InvalidTransitionException, match="CANCELLED"):
            await client_quote_service.create_client_quote(rfq.id)

    @pytest.mark.asyncio
    async def test_orphan_supplier_line_is_skipped(
        self, client_quote_service, mock_db, furnished_rfq
    ):
        rfq, sofa, _, _, _ = furnished_rfq
        quote = _make_accepted_quote(
            _make_supplier_line(sofa.id, "100.00", 2),
            _make_supplier_line(uuid.uuid4(), "999.00", 1),
        )
        mock_db.execute.side_effect = [
            _make_rfq_result(rfq),
            _make_scalars_result([quote]),
            _make_seq_result(4),
        ]

        client_quote = await client_quote_service.create_client_quote(
            rfq.id, markup_percent=Decimal("0")
        )

        assert len(client_quote.line_items) == 1
        assert client_quote.subtotal == Decimal("200.00")


class TestReadClientQuotes:
    @pytest.mark.asyncio
    async def test_get_not_found(self, client_quote_service, mock_db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        with pytest.raises(NotFoundException):
            await client_quote_service.get_client_quote(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_for_rfq(self, client_quote_service, mock_db):
        client_quotes = [MagicMock()]
        mock_db.execute.return_value = _make_scalars_result(client_quotes)

        assert await client_quote_service.list_client_quotes(uuid.uuid4()) == client_quotes
