"""Tests for RFQ lifecycle rules (no database)."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta, timezone

import pytest

from quoteroom.exceptions import InvalidTransitionException, StaleStateException
from quoteroom.models import Rfq, RfqStatus, RfqTransitionType, SupplierResponseStatus, SupplierRfq
from quoteroom.modules.rfq.constants import TERMINAL_STATUSES, VALID_TRANSITIONS
from quoteroom.modules.rfq.lifecycle import (
    as_utc,
    check_version,
    derive_quoted_status,
    is_expired,
    next_status,
)

NOW = datetime(2026, 5, 10, 12, 0, tzinfo=UTC)


def _rfq(status=RfqStatus.DRAFT, response_deadline=None, valid_until=None, lock_version=1) -> Rfq:
    return Rfq(
        id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        rfq_number="RFQ-2026-00001",
        title="Living room refresh",
        status=status,
        response_deadline=response_deadline,
        valid_until=valid_until,
        lock_version=lock_version,
    )


def _supplier(status: SupplierResponseStatus) -> SupplierRfq:
    return SupplierRfq(id=uuid.uuid4(), rfq_id=uuid.uuid4(), response_status=status)


class TestNextStatus:
    def test_happy_path(self) -> None:
        status = RfqStatus.DRAFT
        for transition, expected in [
            (RfqTransitionType.SEND, RfqStatus.SENT),
            (RfqTransitionType.MARK_PARTIALLY_QUOTED, RfqStatus.PARTIALLY_QUOTED),
            (RfqTransitionType.MARK_FULLY_QUOTED, RfqStatus.FULLY_QUOTED),
            (RfqTransitionType.ACCEPT_QUOTE, RfqStatus.QUOTE_ACCEPTED),
        ]:
            status = next_status(status, transition)
            assert status == expected

    def test_accept_not_allowed_before_any_quote(self) -> None:
        with pytest.raises(InvalidTransitionException) as exc_info:
            next_status(RfqStatus.SENT, RfqTransitionType.ACCEPT_QUOTE)
        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "INVALID_TRANSITION"

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_statuses_accept_nothing(self, terminal: RfqStatus) -> None:
        for transition in RfqTransitionType:
            with pytest.raises(InvalidTransitionException):
                next_status(terminal, transition)

    def test_cancel_reachable_from_every_open_status(self) -> None:
        for status in VALID_TRANSITIONS:
            assert next_status(status, RfqTransitionType.CANCEL) == RfqStatus.CANCELLED

    def test_expire_reachable_from_every_open_status(self) -> None:
        for status in VALID_TRANSITIONS:
            assert next_status(status, RfqTransitionType.EXPIRE) == RfqStatus.EXPIRED

    def test_coverage_never_moves_backwards(self) -> None:
        with pytest.raises(InvalidTransitionException):
            next_status(RfqStatus.FULLY_QUOTED, RfqTransitionType.MARK_PARTIALLY_QUOTED)


class TestDeriveQuotedStatus:
    def test_nobody_responded(self) -> None:
        suppliers = [_supplier(SupplierResponseStatus.PENDING)] * 2
        assert derive_quoted_status(suppliers) is None

    def test_some_responded(self) -> None:
        suppliers = [
            _supplier(SupplierResponseStatus.SUBMITTED),
            _supplier(SupplierResponseStatus.PENDING),
        ]
        assert derive_quoted_status(suppliers) == RfqStatus.PARTIALLY_QUOTED

    def test_all_responded(self) -> None:
        suppliers = [
            _supplier(SupplierResponseStatus.SUBMITTED),
            _supplier(SupplierResponseStatus.ACCEPTED),
            _supplier(SupplierResponseStatus.REJECTED),
        ]
        assert derive_quoted_status(suppliers) == RfqStatus.FULLY_QUOTED

    def test_declined_suppliers_are_left_out(self) -> None:
        suppliers = [
            _supplier(SupplierResponseStatus.SUBMITTED),
            _supplier(SupplierResponseStatus.DECLINED),
        ]
        assert derive_quoted_status(suppliers) == RfqStatus.FULLY_QUOTED

    def test_everyone_declined(self) -> None:
        assert derive_quoted_status([_supplier(SupplierResponseStatus.DECLINED)]) is None


class TestIsExpired:
    def test_no_deadlines(self) -> None:
        assert not is_expired(_rfq(), now=NOW)

    def test_response_deadline_passed_while_sent(self) -> None:
        rfq = _rfq(RfqStatus.SENT, response_deadline=NOW - timedelta(minutes=1))
        assert is_expired(rfq, now=NOW)

    def test_deadline_exactly_now_counts_as_passed(self) -> None:
        assert is_expired(_rfq(RfqStatus.SENT, response_deadline=NOW), now=NOW)

    def test_response_deadline_expires_partially_quoted_rfq(self) -> None:
        rfq = _rfq(RfqStatus.PARTIALLY_QUOTED, response_deadline=NOW - timedelta(days=3))
        assert is_expired(rfq, now=NOW)

    def test_response_deadline_ignored_once_fully_quoted(self) -> None:
        rfq = _rfq(RfqStatus.FULLY_QUOTED, response_deadline=NOW - timedelta(days=1))
        assert not is_expired(rfq, now=NOW)

    def test_valid_until_expires_quoted_rfq(self) -> None:
        rfq = _rfq(RfqStatus.FULLY_QUOTED, valid_until=NOW - timedelta(days=1))
        assert is_expired(rfq, now=NOW)

    def test_accepted_and_terminal_rfqs_never_expire(self) -> None:
        past = NOW - timedelta(days=1)
        for status in (RfqStatus.QUOTE_ACCEPTED, RfqStatus.CANCELLED, RfqStatus.EXPIRED):
            rfq = _rfq(status, response_deadline=past, valid_until=past)
            assert not is_expired(rfq, now=NOW)

    def test_future_deadline(self) -> None:
        rfq = _rfq(RfqStatus.SENT, response_deadline=NOW + timedelta(days=3))
        assert not is_expired(rfq, now=NOW)

    def test_naive_deadlines_are_read_as_utc(self) -> None:
        naive_past = NOW.replace(tzinfo=None) - timedelta(hours=1)
        naive_future = NOW.replace(tzinfo=None) + timedelta(hours=1)
        assert is_expired(_rfq(RfqStatus.SENT, response_deadline=naive_past), now=NOW)
        assert not is_expired(_rfq(RfqStatus.SENT, valid_until=naive_future), now=NOW)

    def test_default_now_with_naive_deadline(self) -> None:
        rfq = _rfq(RfqStatus.SENT, valid_until=datetime(2000, 1, 1))
        assert is_expired(rfq)


class TestAsUtc:
    def test_naive_value_gets_utc(self) -> None:
        assert as_utc(datetime(2026, 12, 31)) == datetime(2026, 12, 31, tzinfo=UTC)

    def test_offset_value_is_converted(self) -> None:
        paris = timezone(timedelta(hours=1))
        converted = as_utc(datetime(2026, 12, 31, 1, 0, tzinfo=paris))
        assert converted == datetime(2026, 12, 31, 0, 0, tzinfo=UTC)
        assert converted.tzinfo is UTC


class TestCheckVersion:
    def test_no_expectation_skips_check(self) -> None:
        check_version(_rfq(lock_version=4), None)

    def test_matching_version(self) -> None:
        check_version(_rfq(lock_version=4), 4)

    def test_stale_version(self) -> None:
        with pytest.raises(StaleStateException) as exc_info:
            check_version(_rfq(lock_version=5), 4)
        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "STALE_STATE"
