"""Consistency checks applied to a supplier quote before it is stored."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from decimal import Decimal

from quoteroom.exceptions import ValidationException
from quoteroom.modules.rfq.constants import MONEY_QUANTUM


def _money(value) -> Decimal:
    return Decimal(str(value))


def validate_quote_lines(
    line_items: list[dict],
    rfq_line_item_ids: Iterable[uuid.UUID],
) -> Decimal:
    """Check each submitted line and return the sum of line totals.

    Every line must reference an RFQ line item, appear at most once per RFQ
    line item, carry a positive quantity and a non-negative unit price, and
    state a ``total_price`` equal to ``unit_price * quantity`` to the cent.
    All problems are collected and raised together.
    """
    known = set(rfq_line_item_ids)
    seen: set[uuid.UUID] = set()
    errors: list[dict] = []
    line_sum = Decimal("0")

    if not line_items:
        raise ValidationException(
            "A quote must contain at least one line item",
            details=[{"field": "line_items", "message": "empty"}],
        )

    for index, item in enumerate(line_items):
        field = f"line_items.{index}"
        ref = item.get("rfq_line_item_id")
        if ref not in known:
            errors.append({
                "field": f"{field}.rfq_line_item_id",
                "message": f"{ref} is not a line item of this RFQ",
            })
        elif ref in seen:
            errors.append({
                "field": f"{field}.rfq_line_item_id",
                "message": f"{ref} is quoted more than once",
            })
        else:
            seen.add(ref)

        quantity = item.get("quantity")
        if quantity is None or int(quantity) <= 0:
            errors.append({"field": f"{field}.quantity", "message": "must be positive"})
            continue

        unit_price = _money(item.get("unit_price", 0))
        if unit_price < 0:
            errors.append({"field": f"{field}.unit_price", "message": "must not be negative"})
            continue

        total_price = _money(item.get("total_price", 0))
        expected = (unit_price * int(quantity)).quantize(MONEY_QUANTUM)
        if total_price.quantize(MONEY_QUANTUM) != expected:
            errors.append({
                "field": f"{field}.total_price",
                "message": f"expected {expected} (unit_price x quantity), got {total_price}",
            })
        line_sum += total_price

    if errors:
        raise ValidationException("Quote line items are inconsistent", details=errors)
    return line_sum


def resolve_total_amount(
    line_sum: Decimal,
    shipping_cost: Decimal,
    total_amount: Decimal | None,
) -> Decimal:
    """Return the quote total, checking a supplied total against the lines.

    A supplied total is never silently recomputed: a mismatch is an error.
    """
    expected = (line_sum + _money(shipping_cost)).quantize(MONEY_QUANTUM)
    if total_amount is None:
        return expected
    supplied = _money(total_amount).quantize(MONEY_QUANTUM)
    if supplied != expected:
        raise ValidationException(
            f"total_amount {supplied} does not equal line totals plus shipping ({expected})",
            details=[{"field": "total_amount", "message": f"expected {expected}"}],
        )
    return supplied
