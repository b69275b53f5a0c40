"""ComparisonService: loads an RFQ snapshot and runs the comparison engine."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from quoteroom.models.enums import LineItemIssueKind
from quoteroom.modules.rfq.aggregation import aggregate, valid_quotes
from quoteroom.modules.rfq.comparison import build_bid_matrix, order_quotes_for_comparison
from quoteroom.modules.rfq.matching import find_duplicate_line_items, find_orphan_line_items
from quoteroom.modules.rfq.quote_service import QuoteService
from quoteroom.modules.rfq.rfq_service import RfqService
from quoteroom.modules.rfq.schemas import (
    ComparedQuote,
    ComparisonResponse,
    LineItemIssue,
)

logger = logging.getLogger(__name__)


class ComparisonService:
    """Read-only comparison view over the valid quotes of one RFQ."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_comparison(self, rfq_id: uuid.UUID) -> ComparisonResponse:
        rfq = await RfqService(self.db).get_rfq(rfq_id)
        quotes = await QuoteService(self.db).list_quotes_for_rfq(rfq_id)
        candidates = order_quotes_for_comparison(valid_quotes(quotes))

        rfq_line_item_ids = [item.id for item in rfq.line_items]
        issues: list[LineItemIssue] = []
        for quote in candidates:
            for line in find_orphan_line_items(quote, rfq_line_item_ids):
                issues.append(LineItemIssue(
                    quote_id=quote.id,
                    quote_line_item_id=line.id,
                    rfq_line_item_id=line.rfq_line_item_id,
                    kind=LineItemIssueKind.ORPHAN,
                ))
            for line in find_duplicate_line_items(quote):
                issues.append(LineItemIssue(
                    quote_id=quote.id,
                    quote_line_item_id=line.id,
                    rfq_line_item_id=line.rfq_line_item_id,
                    kind=LineItemIssueKind.DUPLICATE,
                ))
        if issues:
            logger.warning(
                "RFQ %s comparison: %d quote line(s) excluded as orphans or duplicates",
                rfq_id, len(issues),
            )

        return ComparisonResponse(
            rfq_id=rfq.id,
            status=rfq.status,
            quotes=[ComparedQuote.model_validate(q) for q in candidates],
            metrics=aggregate(candidates),
            rows=build_bid_matrix(rfq.line_items, candidates),
            issues=issues,
        )
