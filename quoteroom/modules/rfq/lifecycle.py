"""Pure lifecycle rules for RFQs: transition lookup, coverage, expiry, versions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from quoteroom.exceptions import InvalidTransitionException, StaleStateException
from quoteroom.models.enums import RfqStatus, RfqTransitionType, SupplierResponseStatus
from quoteroom.models.rfq import Rfq
from quoteroom.models.supplier_rfq import SupplierRfq
from quoteroom.modules.rfq.constants import (
    DEADLINE_EXPIRABLE_STATUSES,
    QUOTED_RESPONSE_STATUSES,
    VALID_TRANSITIONS,
    VALIDITY_EXPIRABLE_STATUSES,
)


def next_status(current: RfqStatus, transition_type: RfqTransitionType) -> RfqStatus:
    """Look up the target status, raising when the transition is not allowed."""
    allowed = VALID_TRANSITIONS.get(current, {})
    if transition_type not in allowed:
        raise InvalidTransitionException(
            f"Cannot perform '{transition_type.value}' from status '{current.value}'. "
            f"Allowed transitions: {[t.value for t in allowed]}",
            details=[{
                "field": "status",
                "message": f"{current.value} does not accept {transition_type.value}",
            }],
        )
    return allowed[transition_type]


def derive_quoted_status(supplier_rfqs: Iterable[SupplierRfq]) -> RfqStatus | None:
    """Status implied by supplier responses, or None if nobody has quoted yet.

    Suppliers that declined are resolved without a quote and are left out of
    the pool, so they never hold an RFQ back from FULLY_QUOTED.
    """
    pool = [
        s for s in supplier_rfqs
        if s.response_status != SupplierResponseStatus.DECLINED
    ]
    responded = sum(1 for s in pool if s.response_status in QUOTED_RESPONSE_STATUSES)
    if responded == 0:
        return None
    if responded == len(pool):
        return RfqStatus.FULLY_QUOTED
    return RfqStatus.PARTIALLY_QUOTED


def as_utc(value: datetime) -> datetime:
    """Read naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_expired(rfq: Rfq, now: datetime | None = None) -> bool:
    """Whether a passed deadline should move ``rfq`` to EXPIRED.

    ``valid_until`` expires any open RFQ that has not reached acceptance.
    ``response_deadline`` expires RFQs whose suppliers have not all answered.
    """
    now = as_utc(now or datetime.now(UTC))
    if rfq.valid_until is not None and as_utc(rfq.valid_until) <= now:
        if rfq.status in VALIDITY_EXPIRABLE_STATUSES:
            return True
    if rfq.response_deadline is not None and as_utc(rfq.response_deadline) <= now:
        if rfq.status in DEADLINE_EXPIRABLE_STATUSES:
            return True
    return False


def check_version(rfq: Rfq, expected_version: int | None) -> None:
    """Raise StaleStateException if the caller saw an older RFQ revision."""
    if expected_version is None:
        return
    if rfq.lock_version != expected_version:
        raise StaleStateException(
            f"RFQ {rfq.id} has been modified (version {rfq.lock_version}, "
            f"expected {expected_version}). Reload and retry.",
            details=[{"field": "expected_version", "message": "stale"}],
        )
