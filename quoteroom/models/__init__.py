# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from quoteroom.models.client_quote import ClientQuote
from quoteroom.models.client_quote_line_item import ClientQuoteLineItem
from quoteroom.models.enums import (
    ClientQuoteStatus,
    EventStatus,
    LineItemIssueKind,
    PriceClassification,
    QuoteStatus,
    RfqStatus,
    RfqTransitionType,
    SupplierResponseStatus,
)
from quoteroom.models.event_outbox import EventOutbox
from quoteroom.models.quote import Quote
from quoteroom.models.quote_line_item import QuoteLineItem
from quoteroom.models.rfq import Rfq
from quoteroom.models.rfq_line_item import RfqLineItem
from quoteroom.models.rfq_transition import RfqTransition
from quoteroom.models.supplier_rfq import SupplierRfq

__all__ = [
    "ClientQuote",
    "ClientQuoteLineItem",
    "ClientQuoteStatus",
    "EventOutbox",
    "EventStatus",
    "LineItemIssueKind",
    "PriceClassification",
    "Quote",
    "QuoteLineItem",
    "QuoteStatus",
    "Rfq",
    "RfqLineItem",
    "RfqStatus",
    "RfqTransition",
    "RfqTransitionType",
    "SupplierResponseStatus",
    "SupplierRfq",
]
