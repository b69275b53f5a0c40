"""Tests for quote line consistency checks."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from quoteroom.exceptions import ValidationException
from quoteroom.modules.rfq.validators import resolve_total_amount, validate_quote_lines

ITEM_A = uuid.uuid4()
ITEM_B = uuid.uuid4()
RFQ_ITEMS = [ITEM_A, ITEM_B]


def _line(ref=ITEM_A, unit_price="25.00", quantity=4, total_price="100.00") -> dict:
    return {
        "rfq_line_item_id": ref,
        "unit_price": Decimal(unit_price),
        "quantity": quantity,
        "total_price": Decimal(total_price),
    }


class TestValidateQuoteLines:
    def test_valid_lines_return_sum(self) -> None:
        lines = [_line(), _line(ITEM_B, "10.50", 2, "21.00")]
        assert validate_quote_lines(lines, RFQ_ITEMS) == Decimal("121.00")

    def test_partial_coverage_is_allowed(self) -> None:
        assert validate_quote_lines([_line(ITEM_B, "5", 1, "5")], RFQ_ITEMS) == Decimal("5")

    def test_empty_quote_rejected(self) -> None:
        with pytest.raises(ValidationException, match="at least one line item"):
            validate_quote_lines([], RFQ_ITEMS)

    def test_unknown_line_item_reference(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines([_line(ref=uuid.uuid4())], RFQ_ITEMS)
        assert exc_info.value.details[0]["field"] == "line_items.0.rfq_line_item_id"

    def test_duplicate_reference(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines([_line(), _line()], RFQ_ITEMS)
        assert "more than once" in exc_info.value.details[0]["message"]

    def test_non_positive_quantity(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines([_line(quantity=0, total_price="0")], RFQ_ITEMS)
        assert exc_info.value.details[0]["field"] == "line_items.0.quantity"

    def test_negative_unit_price(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines([_line(unit_price="-1", total_price="-4")], RFQ_ITEMS)
        assert exc_info.value.details[0]["field"] == "line_items.0.unit_price"

    def test_total_price_must_equal_unit_times_quantity(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines([_line(total_price="99.99")], RFQ_ITEMS)
        assert exc_info.value.details[0]["field"] == "line_items.0.total_price"

    def test_all_problems_reported_together(self) -> None:
        lines = [
            _line(ref=uuid.uuid4()),
            _line(ITEM_B, total_price="1.00"),
        ]
        with pytest.raises(ValidationException) as exc_info:
            validate_quote_lines(lines, RFQ_ITEMS)
        assert len(exc_info.value.details) == 2

    def test_zero_price_line_is_valid(self) -> None:
        assert validate_quote_lines([_line(unit_price="0", total_price="0")], RFQ_ITEMS) == 0


class TestResolveTotalAmount:
    def test_total_computed_when_omitted(self) -> None:
        assert resolve_total_amount(Decimal("121.00"), Decimal("15"), None) == Decimal("136.00")

    def test_matching_total_accepted(self) -> None:
        assert resolve_total_amount(Decimal("100"), Decimal("0"), Decimal("100.00")) == Decimal(
            "100.00"
        )

    def test_mismatched_total_rejected(self) -> None:
        with pytest.raises(ValidationException, match="does not equal"):
            resolve_total_amount(Decimal("100"), Decimal("10"), Decimal("100"))
