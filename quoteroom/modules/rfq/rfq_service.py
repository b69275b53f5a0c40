"""RFQ lifecycle service: creation, line items, sending, state machine."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.exc import StaleDataError

from quoteroom.config import settings
from quoteroom.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    StaleStateException,
    ValidationException,
)
from quoteroom.models.client_quote import ClientQuote
from quoteroom.models.enums import (
    QuoteStatus,
    RfqStatus,
    RfqTransitionType,
    SupplierResponseStatus,
)
from quoteroom.models.quote import Quote
from quoteroom.models.rfq import Rfq
from quoteroom.models.rfq_line_item import RfqLineItem
from quoteroom.models.rfq_transition import RfqTransition
from quoteroom.models.supplier_rfq import SupplierRfq
from quoteroom.modules.events.outbox_service import OutboxService
from quoteroom.modules.rfq.constants import (
    DELETABLE_STATUSES,
    EDITABLE_STATUSES,
    EVENT_RFQ_CREATED,
    EVENT_RFQ_DELETED,
    TRANSITION_EVENT_MAP,
)
from quoteroom.modules.rfq.lifecycle import (
    as_utc,
    check_version,
    derive_quoted_status,
    is_expired,
    next_status,
)

logger = logging.getLogger(__name__)

# Forward-only ordering used when coverage moves the RFQ along
_COVERAGE_RANK: dict[RfqStatus, int] = {
    RfqStatus.SENT: 0,
    RfqStatus.PARTIALLY_QUOTED: 1,
    RfqStatus.FULLY_QUOTED: 2,
}

_COVERAGE_TRANSITION: dict[RfqStatus, RfqTransitionType] = {
    RfqStatus.PARTIALLY_QUOTED: RfqTransitionType.MARK_PARTIALLY_QUOTED,
    RfqStatus.FULLY_QUOTED: RfqTransitionType.MARK_FULLY_QUOTED,
}


class RfqService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reference number generation
    # ------------------------------------------------------------------

    async def _generate_rfq_number(self) -> str:
        """Generate RFQ-YYYY-NNNNN using a DB sequence."""
        result = await self.db.execute(text("SELECT nextval('rfq_number_seq')"))
        seq_val = result.scalar()
        year = datetime.now(UTC).year
        return f"{settings.rfq_number_prefix}-{year}-{seq_val:05d}"

    async def _flush(self, rfq: Rfq) -> None:
        """Flush pending changes, surfacing lost optimistic-lock races."""
        try:
            await self.db.flush()
        except StaleDataError as exc:
            raise StaleStateException(
                f"RFQ {rfq.id} was modified concurrently. Reload and retry."
            ) from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_rfq(
        self,
        project_id: uuid.UUID,
        title: str,
        created_by: uuid.UUID | None = None,
        description: str | None = None,
        response_deadline: datetime | None = None,
        valid_until: datetime | None = None,
        notes: str | None = None,
    ) -> Rfq:
        """Create a new RFQ in DRAFT status."""
        if response_deadline is not None:
            response_deadline = as_utc(response_deadline)
        else:
            response_deadline = datetime.now(UTC) + timedelta(
                days=settings.default_response_window_days
            )
        if valid_until is not None:
            valid_until = as_utc(valid_until)
        if valid_until is not None and valid_until < response_deadline:
            raise ValidationException(
                "valid_until cannot be earlier than response_deadline",
                details=[{"field": "valid_until", "message": "before response_deadline"}],
            )

        rfq_number = await self._generate_rfq_number()
        rfq = Rfq(
            rfq_number=rfq_number,
            project_id=project_id,
            title=title,
            description=description,
            response_deadline=response_deadline,
            valid_until=valid_until,
            notes=notes,
            created_by=created_by,
            status=RfqStatus.DRAFT,
        )
        self.db.add(rfq)
        await self.db.flush()

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_RFQ_CREATED,
            aggregate_type="rfq",
            aggregate_id=str(rfq.id),
            payload={
                "rfq_id": str(rfq.id),
                "rfq_number": rfq_number,
                "project_id": str(project_id),
            },
        )
        logger.info("Created RFQ %s (%s)", rfq.id, rfq_number)
        return rfq

    async def _load_rfq(self, rfq_id: uuid.UUID) -> Rfq:
        result = await self.db.execute(
            select(Rfq)
            .options(joinedload(Rfq.line_items))
            .where(Rfq.id == rfq_id)
        )
        rfq = result.unique().scalar_one_or_none()
        if rfq is None:
            raise NotFoundException(f"RFQ {rfq_id} not found")
        return rfq

    async def get_rfq(self, rfq_id: uuid.UUID) -> Rfq:
        """Get an RFQ by ID, expiring it first if a deadline has passed."""
        rfq = await self._load_rfq(rfq_id)
        if is_expired(rfq):
            logger.info("RFQ %s passed its deadline in %s; expiring", rfq_id, rfq.status.value)
            rfq = await self._apply_transition(
                rfq,
                RfqTransitionType.EXPIRE,
                triggered_by=None,
                trigger_source="SYSTEM",
                reason="Deadline passed",
            )
        return rfq

    async def delete_rfq(self, rfq_id: uuid.UUID) -> None:
        """Hard-delete a DRAFT or CANCELLED RFQ that has no quotes."""
        rfq = await self.get_rfq(rfq_id)
        if rfq.status not in DELETABLE_STATUSES:
            raise InvalidTransitionException(
                f"Cannot delete RFQ in status '{rfq.status.value}'. "
                "Only DRAFT or CANCELLED RFQs can be deleted."
            )

        quote_count_result = await self.db.execute(
            select(func.count())
            .select_from(Quote)
            .join(SupplierRfq, Quote.supplier_rfq_id == SupplierRfq.id)
            .where(SupplierRfq.rfq_id == rfq_id)
        )
        quote_count = quote_count_result.scalar() or 0
        if quote_count:
            raise InvalidTransitionException(
                f"Cannot delete RFQ {rfq_id}: {quote_count} quote(s) reference it"
            )

        await self.db.delete(rfq)
        await self.db.flush()

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_RFQ_DELETED,
            aggregate_type="rfq",
            aggregate_id=str(rfq_id),
            payload={"rfq_id": str(rfq_id), "rfq_number": rfq.rfq_number},
        )
        logger.info("Deleted RFQ %s", rfq_id)

    # ------------------------------------------------------------------
    # Line Items
    # ------------------------------------------------------------------

    async def add_line_item(
        self,
        rfq_id: uuid.UUID,
        description: str,
        quantity: int,
        specifications: str | None = None,
        order_index: int | None = None,
        notes: str | None = None,
    ) -> RfqLineItem:
        """Add a line item to a DRAFT RFQ."""
        rfq = await self.get_rfq(rfq_id)
        if rfq.status not in EDITABLE_STATUSES:
            raise InvalidTransitionException(
                f"Line items can only be added to DRAFT RFQs (status '{rfq.status.value}')"
            )
        if quantity <= 0:
            raise ValidationException(
                "Line item quantity must be positive",
                details=[{"field": "quantity", "message": "must be positive"}],
            )

        item = RfqLineItem(
            rfq_id=rfq_id,
            description=description,
            quantity=quantity,
            specifications=specifications,
            order_index=order_index if order_index is not None else len(rfq.line_items),
            notes=notes,
        )
        self.db.add(item)
        rfq.line_items.append(item)
        await self.db.flush()
        return item

    async def get_line_items(self, rfq_id: uuid.UUID) -> list[RfqLineItem]:
        """Get all line items for an RFQ."""
        result = await self.db.execute(
            select(RfqLineItem)
            .where(RfqLineItem.rfq_id == rfq_id)
            .order_by(RfqLineItem.order_index)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_to_suppliers(
        self,
        rfq_id: uuid.UUID,
        supplier_ids: list[uuid.UUID] | None = None,
        vendors: list[dict] | None = None,
        triggered_by: uuid.UUID | None = None,
        expected_version: int | None = None,
    ) -> list[SupplierRfq]:
        """Send the RFQ to registered suppliers and/or one-time vendors.

        Suppliers that were already sent the RFQ are skipped, so repeating a
        call is harmless; new suppliers in the same call are still sent.
        Returns the SupplierRfq rows sent by this call.
        """
        supplier_ids = list(dict.fromkeys(supplier_ids or []))
        vendors = vendors or []
        if not supplier_ids and not vendors:
            raise ValidationException(
                "Select at least one supplier to send the RFQ to",
                details=[{"field": "supplier_ids", "message": "empty selection"}],
            )

        rfq = await self.get_rfq(rfq_id)
        check_version(rfq, expected_version)
        next_status(rfq.status, RfqTransitionType.SEND)

        existing_result = await self.db.execute(
            select(SupplierRfq).where(SupplierRfq.rfq_id == rfq_id)
        )
        existing = list(existing_result.scalars().all())
        by_supplier = {s.supplier_id: s for s in existing if s.supplier_id is not None}
        by_email = {
            s.vendor_email.lower(): s
            for s in existing
            if s.supplier_id is None and s.vendor_email
        }

        now = datetime.now(UTC)
        sent: list[SupplierRfq] = []
        skipped = 0

        def _dispatch(row: SupplierRfq) -> None:
            nonlocal skipped
            if row.sent_at is not None:
                skipped += 1
                return
            row.response_status = SupplierResponseStatus.PENDING
            row.sent_at = now
            sent.append(row)

        for supplier_id in supplier_ids:
            row = by_supplier.get(supplier_id)
            if row is None:
                row = SupplierRfq(rfq_id=rfq_id, supplier_id=supplier_id)
                self.db.add(row)
            _dispatch(row)

        for vendor in vendors:
            email = vendor["email"].strip()
            row = by_email.get(email.lower())
            if row is None:
                row = SupplierRfq(rfq_id=rfq_id, vendor_name=vendor.get("name"), vendor_email=email)
                self.db.add(row)
                by_email[email.lower()] = row
            _dispatch(row)

        if not sent:
            logger.info("RFQ %s already sent to all %d selected supplier(s)", rfq_id, skipped)
            return []

        await self._apply_transition(
            rfq,
            RfqTransitionType.SEND,
            triggered_by=triggered_by,
            metadata={"sent_count": len(sent), "skipped_count": skipped},
        )
        logger.info(
            "Sent RFQ %s to %d supplier(s), skipped %d already sent",
            rfq_id, len(sent), skipped,
        )
        return sent

    async def list_supplier_rfqs(self, rfq_id: uuid.UUID) -> list[SupplierRfq]:
        """List all supplier invitations for an RFQ."""
        result = await self.db.execute(
            select(SupplierRfq)
            .where(SupplierRfq.rfq_id == rfq_id)
            .order_by(SupplierRfq.created_at.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Quote decisions
    # ------------------------------------------------------------------

    async def accept_quote(
        self,
        rfq_id: uuid.UUID,
        quote_id: uuid.UUID,
        triggered_by: uuid.UUID | None = None,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> Rfq:
        """Accept one supplier's quote. Competing quotes are left untouched."""
        return await self.transition(
            rfq_id,
            RfqTransitionType.ACCEPT_QUOTE,
            triggered_by=triggered_by,
            reason=reason,
            metadata={"quote_id": str(quote_id)},
            expected_version=expected_version,
        )

    async def reject_quote(
        self,
        rfq_id: uuid.UUID,
        quote_id: uuid.UUID,
        triggered_by: uuid.UUID | None = None,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> Rfq:
        """Reject one supplier's quote; the RFQ keeps its coverage status."""
        return await self.transition(
            rfq_id,
            RfqTransitionType.REJECT_QUOTE,
            triggered_by=triggered_by,
            reason=reason,
            metadata={"quote_id": str(quote_id)},
            expected_version=expected_version,
        )

    async def cancel(
        self,
        rfq_id: uuid.UUID,
        reason: str | None = None,
        triggered_by: uuid.UUID | None = None,
        expected_version: int | None = None,
    ) -> Rfq:
        return await self.transition(
            rfq_id,
            RfqTransitionType.CANCEL,
            triggered_by=triggered_by,
            reason=reason,
            expected_version=expected_version,
        )

    async def expire(
        self,
        rfq_id: uuid.UUID,
        triggered_by: uuid.UUID | None = None,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> Rfq:
        return await self.transition(
            rfq_id,
            RfqTransitionType.EXPIRE,
            triggered_by=triggered_by,
            reason=reason,
            expected_version=expected_version,
        )

    async def sync_quoted_status(
        self,
        rfq: Rfq,
        triggered_by: uuid.UUID | None = None,
        trigger_source: str = "SYSTEM",
    ) -> Rfq:
        """Move the RFQ forward to match supplier coverage.

        Coverage only ever advances SENT -> PARTIALLY_QUOTED -> FULLY_QUOTED.
        The RFQ row is touched even when its status does not change, so a
        concurrent response that raced this one fails its version check.
        """
        result = await self.db.execute(
            select(SupplierRfq).where(SupplierRfq.rfq_id == rfq.id)
        )
        derived = derive_quoted_status(result.scalars().all())

        current_rank = _COVERAGE_RANK.get(rfq.status)
        if derived is None or current_rank is None or _COVERAGE_RANK[derived] <= current_rank:
            rfq.updated_at = datetime.now(UTC)
            await self._flush(rfq)
            return rfq

        return await self._apply_transition(
            rfq,
            _COVERAGE_TRANSITION[derived],
            triggered_by=triggered_by,
            trigger_source=trigger_source,
        )

    # ------------------------------------------------------------------
    # State Machine
    # ------------------------------------------------------------------

    async def transition(
        self,
        rfq_id: uuid.UUID,
        transition_type: RfqTransitionType,
        triggered_by: uuid.UUID | None = None,
        trigger_source: str = "USER",
        reason: str | None = None,
        metadata: dict | None = None,
        expected_version: int | None = None,
    ) -> Rfq:
        """Execute a state machine transition on an RFQ.

        Validates via VALID_TRANSITIONS, checks the caller's expected version,
        runs guard conditions, records the transition, and emits an event via
        OutboxService.
        """
        rfq = await self.get_rfq(rfq_id)
        check_version(rfq, expected_version)
        return await self._apply_transition(
            rfq,
            transition_type,
            triggered_by=triggered_by,
            trigger_source=trigger_source,
            reason=reason,
            metadata=metadata,
        )

    async def _apply_transition(
        self,
        rfq: Rfq,
        transition_type: RfqTransitionType,
        triggered_by: uuid.UUID | None,
        trigger_source: str = "USER",
        reason: str | None = None,
        metadata: dict | None = None,
    ) -> Rfq:
        old_status = rfq.status
        new_status = next_status(old_status, transition_type)

        await self._run_guards(rfq, transition_type, metadata)

        now = datetime.now(UTC)
        rfq.status = new_status
        rfq.updated_at = now

        if transition_type == RfqTransitionType.SEND and rfq.sent_at is None:
            rfq.sent_at = now
        elif transition_type == RfqTransitionType.ACCEPT_QUOTE and rfq.accepted_at is None:
            rfq.accepted_at = now
        elif transition_type == RfqTransitionType.CANCEL:
            rfq.cancelled_at = now
            rfq.cancellation_reason = reason
        elif transition_type == RfqTransitionType.EXPIRE:
            rfq.expired_at = now

        transition_record = RfqTransition(
            rfq_id=rfq.id,
            from_status=old_status,
            to_status=new_status,
            transition_type=transition_type,
            triggered_by=triggered_by,
            trigger_source=trigger_source,
            reason=reason,
            metadata_extra=metadata or {},
        )
        self.db.add(transition_record)
        await self._flush(rfq)

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=TRANSITION_EVENT_MAP[transition_type],
            aggregate_type="rfq",
            aggregate_id=str(rfq.id),
            payload={
                "rfq_id": str(rfq.id),
                "rfq_number": rfq.rfq_number,
                "from_status": old_status.value,
                "to_status": new_status.value,
                "triggered_by": str(triggered_by) if triggered_by else None,
                "trigger_source": trigger_source,
                "reason": reason,
                "metadata": metadata,
            },
        )

        logger.info(
            "RFQ %s transitioned %s -> %s via %s",
            rfq.id, old_status.value, new_status.value, transition_type.value,
        )
        return rfq

    async def _run_guards(
        self,
        rfq: Rfq,
        transition_type: RfqTransitionType,
        metadata: dict | None,
    ) -> None:
        """Run guard conditions for the given transition."""
        if transition_type == RfqTransitionType.SEND:
            await self._guard_send(rfq)
        elif transition_type == RfqTransitionType.ACCEPT_QUOTE:
            await self._guard_accept(rfq, metadata)
        elif transition_type == RfqTransitionType.REJECT_QUOTE:
            await self._guard_reject(rfq, metadata)
        elif transition_type == RfqTransitionType.CANCEL:
            await self._guard_cancel(rfq)

    async def _guard_send(self, rfq: Rfq) -> None:
        """SEND requires at least one line item."""
        item_count_result = await self.db.execute(
            select(func.count()).select_from(RfqLineItem).where(RfqLineItem.rfq_id == rfq.id)
        )
        item_count = item_count_result.scalar() or 0
        if item_count == 0:
            raise ValidationException(
                "Cannot send an RFQ without at least one line item",
                details=[{"field": "line_items", "message": "empty"}],
            )

    async def _load_decision_target(
        self, rfq: Rfq, metadata: dict | None, action: str
    ) -> tuple[Quote, SupplierRfq]:
        if not metadata or "quote_id" not in metadata:
            raise ValidationException(f"{action} requires 'quote_id' in metadata")

        quote_id = uuid.UUID(str(metadata["quote_id"]))
        result = await self.db.execute(
            select(Quote, SupplierRfq)
            .join(SupplierRfq, Quote.supplier_rfq_id == SupplierRfq.id)
            .where(Quote.id == quote_id, SupplierRfq.rfq_id == rfq.id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundException(f"Quote {quote_id} not found on RFQ {rfq.id}")
        quote, supplier_rfq = row
        if quote.status != QuoteStatus.SUBMITTED:
            raise InvalidTransitionException(
                f"Cannot {action.lower()} a quote in status '{quote.status.value}'. "
                "Only SUBMITTED quotes can be decided."
            )
        return quote, supplier_rfq

    async def _guard_accept(self, rfq: Rfq, metadata: dict | None) -> None:
        """ACCEPT_QUOTE needs a SUBMITTED quote and no other accepted quote
        from the same supplier."""
        quote, supplier_rfq = await self._load_decision_target(rfq, metadata, "Accept")

        accepted_result = await self.db.execute(
            select(func.count()).select_from(Quote).where(
                Quote.supplier_rfq_id == supplier_rfq.id,
                Quote.status == QuoteStatus.ACCEPTED,
                Quote.id != quote.id,
            )
        )
        if (accepted_result.scalar() or 0) > 0:
            raise InvalidTransitionException(
                f"Supplier invitation {supplier_rfq.id} already has an accepted quote"
            )

        now = datetime.now(UTC)
        quote.status = QuoteStatus.ACCEPTED
        quote.accepted_at = now
        supplier_rfq.response_status = SupplierResponseStatus.ACCEPTED
        supplier_rfq.responded_at = supplier_rfq.responded_at or now

    async def _guard_reject(self, rfq: Rfq, metadata: dict | None) -> None:
        """REJECT_QUOTE needs a SUBMITTED quote on this RFQ."""
        quote, supplier_rfq = await self._load_decision_target(rfq, metadata, "Reject")

        quote.status = QuoteStatus.REJECTED
        quote.rejected_at = datetime.now(UTC)
        supplier_rfq.response_status = SupplierResponseStatus.REJECTED

    async def _guard_cancel(self, rfq: Rfq) -> None:
        """CANCEL from QUOTE_ACCEPTED is refused once a client quote exists."""
        if rfq.status != RfqStatus.QUOTE_ACCEPTED:
            return
        result = await self.db.execute(
            select(func.count()).select_from(ClientQuote).where(ClientQuote.rfq_id == rfq.id)
        )
        if (result.scalar() or 0) > 0:
            raise InvalidTransitionException(
                f"Cannot cancel RFQ {rfq.id}: a client quote has already been generated"
            )

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    async def get_transitions(self, rfq_id: uuid.UUID) -> list[RfqTransition]:
        """Get the full transition history for an RFQ."""
        result = await self.db.execute(
            select(RfqTransition)
            .where(RfqTransition.rfq_id == rfq_id)
            .order_by(RfqTransition.created_at.asc())
        )
        return list(result.scalars().all())
