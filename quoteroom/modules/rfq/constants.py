"""RFQ state machine transitions, event types, and comparison thresholds."""

from __future__ import annotations

from decimal import Decimal

from quoteroom.models.enums import (
    QuoteStatus,
    RfqStatus,
    RfqTransitionType,
    SupplierResponseStatus,
)

# Valid transitions: from_status -> {transition_type -> to_status}
VALID_TRANSITIONS: dict[RfqStatus, dict[RfqTransitionType, RfqStatus]] = {
    RfqStatus.DRAFT: {
        RfqTransitionType.SEND: RfqStatus.SENT,
        RfqTransitionType.CANCEL: RfqStatus.CANCELLED,
        RfqTransitionType.EXPIRE: RfqStatus.EXPIRED,
    },
    RfqStatus.SENT: {
        RfqTransitionType.SEND: RfqStatus.SENT,
        RfqTransitionType.MARK_PARTIALLY_QUOTED: RfqStatus.PARTIALLY_QUOTED,
        RfqTransitionType.MARK_FULLY_QUOTED: RfqStatus.FULLY_QUOTED,
        RfqTransitionType.CANCEL: RfqStatus.CANCELLED,
        RfqTransitionType.EXPIRE: RfqStatus.EXPIRED,
    },
    RfqStatus.PARTIALLY_QUOTED: {
        RfqTransitionType.SEND: RfqStatus.PARTIALLY_QUOTED,
        RfqTransitionType.MARK_PARTIALLY_QUOTED: RfqStatus.PARTIALLY_QUOTED,
        RfqTransitionType.MARK_FULLY_QUOTED: RfqStatus.FULLY_QUOTED,
        RfqTransitionType.ACCEPT_QUOTE: RfqStatus.QUOTE_ACCEPTED,
        RfqTransitionType.REJECT_QUOTE: RfqStatus.PARTIALLY_QUOTED,
        RfqTransitionType.CANCEL: RfqStatus.CANCELLED,
        RfqTransitionType.EXPIRE: RfqStatus.EXPIRED,
    },
    RfqStatus.FULLY_QUOTED: {
        RfqTransitionType.MARK_FULLY_QUOTED: RfqStatus.FULLY_QUOTED,
        RfqTransitionType.ACCEPT_QUOTE: RfqStatus.QUOTE_ACCEPTED,
        RfqTransitionType.REJECT_QUOTE: RfqStatus.FULLY_QUOTED,
        RfqTransitionType.CANCEL: RfqStatus.CANCELLED,
        RfqTransitionType.EXPIRE: RfqStatus.EXPIRED,
    },
    RfqStatus.QUOTE_ACCEPTED: {
        RfqTransitionType.ACCEPT_QUOTE: RfqStatus.QUOTE_ACCEPTED,
        RfqTransitionType.REJECT_QUOTE: RfqStatus.QUOTE_ACCEPTED,
        RfqTransitionType.CANCEL: RfqStatus.CANCELLED,
        RfqTransitionType.EXPIRE: RfqStatus.EXPIRED,
    },
}

# Event type strings for the outbox
EVENT_RFQ_CREATED = "rfq.created"
EVENT_RFQ_SENT = "rfq.sent"
EVENT_RFQ_PARTIALLY_QUOTED = "rfq.partially_quoted"
EVENT_RFQ_FULLY_QUOTED = "rfq.fully_quoted"
EVENT_RFQ_QUOTE_ACCEPTED = "rfq.quote_accepted"
EVENT_RFQ_QUOTE_REJECTED = "rfq.quote_rejected"
EVENT_RFQ_CANCELLED = "rfq.cancelled"
EVENT_RFQ_EXPIRED = "rfq.expired"
EVENT_RFQ_DELETED = "rfq.deleted"
EVENT_QUOTE_SUBMITTED = "quote.submitted"
EVENT_QUOTE_REVISED = "quote.revised"
EVENT_SUPPLIER_DECLINED = "supplier_rfq.declined"
EVENT_CLIENT_QUOTE_CREATED = "client_quote.created"

TRANSITION_EVENT_MAP: dict[RfqTransitionType, str] = {
    RfqTransitionType.SEND: EVENT_RFQ_SENT,
    RfqTransitionType.MARK_PARTIALLY_QUOTED: EVENT_RFQ_PARTIALLY_QUOTED,
    RfqTransitionType.MARK_FULLY_QUOTED: EVENT_RFQ_FULLY_QUOTED,
    RfqTransitionType.ACCEPT_QUOTE: EVENT_RFQ_QUOTE_ACCEPTED,
    RfqTransitionType.REJECT_QUOTE: EVENT_RFQ_QUOTE_REJECTED,
    RfqTransitionType.CANCEL: EVENT_RFQ_CANCELLED,
    RfqTransitionType.EXPIRE: EVENT_RFQ_EXPIRED,
}

# Statuses where the RFQ content (title, line items, etc.) can still be edited
EDITABLE_STATUSES: set[RfqStatus] = {
    RfqStatus.DRAFT,
}

# Statuses where suppliers can submit or revise quotes
QUOTABLE_STATUSES: set[RfqStatus] = {
    RfqStatus.SENT,
    RfqStatus.PARTIALLY_QUOTED,
    RfqStatus.FULLY_QUOTED,
}

# Terminal statuses (no further transitions possible)
TERMINAL_STATUSES: set[RfqStatus] = {
    RfqStatus.CANCELLED,
    RfqStatus.EXPIRED,
}

# Statuses from which a passed response_deadline expires the RFQ
# (some suppliers still owe an answer)
DEADLINE_EXPIRABLE_STATUSES: set[RfqStatus] = {
    RfqStatus.DRAFT,
    RfqStatus.SENT,
    RfqStatus.PARTIALLY_QUOTED,
}

# Statuses from which a passed valid_until expires the RFQ
VALIDITY_EXPIRABLE_STATUSES: set[RfqStatus] = {
    RfqStatus.DRAFT,
    RfqStatus.SENT,
    RfqStatus.PARTIALLY_QUOTED,
    RfqStatus.FULLY_QUOTED,
}

# Statuses in which an RFQ may be physically deleted
DELETABLE_STATUSES: set[RfqStatus] = {
    RfqStatus.DRAFT,
    RfqStatus.CANCELLED,
}

# Quotes that take part in comparison and aggregation
COMPARABLE_QUOTE_STATUSES: frozenset[QuoteStatus] = frozenset({
    QuoteStatus.SUBMITTED,
    QuoteStatus.ACCEPTED,
})

# Supplier responses that count as "quoted" for coverage
QUOTED_RESPONSE_STATUSES: frozenset[SupplierResponseStatus] = frozenset({
    SupplierResponseStatus.SUBMITTED,
    SupplierResponseStatus.ACCEPTED,
    SupplierResponseStatus.REJECTED,
})

# Price deviation bands (percent above the best price, strict > at each cutoff)
HIGH_DEVIATION_PCT = Decimal("20")
MODERATE_DEVIATION_PCT = Decimal("10")

# Money is compared at cent precision
MONEY_QUANTUM = Decimal("0.01")
