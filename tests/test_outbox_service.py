"""Unit tests for OutboxService: events are staged in the caller's transaction."""

import uuid

import pytest

from quoteroom.models.enums import EventStatus
from quoteroom.models.event_outbox import EventOutbox
from quoteroom.modules.events.outbox_service import OutboxService
from quoteroom.modules.rfq.constants import EVENT_RFQ_SENT


class TestOutboxServicePublish:
    """Tests for OutboxService.publish_event."""

    @pytest.mark.asyncio
    async def test_publish_event_creates_pending_event(self, mock_db):
        service = OutboxService(mock_db)
        rfq_id = str(uuid.uuid4())

        event = await service.publish_event(
            event_type=EVENT_RFQ_SENT,
            aggregate_type="rfq",
            aggregate_id=rfq_id,
            payload={"rfq_number": "RFQ-2026-00007", "supplier_count": 2},
        )

        assert isinstance(event, EventOutbox)
        assert event.event_type == EVENT_RFQ_SENT
        assert event.aggregate_type == "rfq"
        assert event.aggregate_id == rfq_id
        assert event.status == EventStatus.PENDING
        assert event.schema_version == 1
        assert event.payload["supplier_count"] == 2

    @pytest.mark.asyncio
    async def test_publish_event_flushes_without_commit(self, mock_db):
        service = OutboxService(mock_db)

        event = await service.publish_event(
            event_type="quote.submitted",
            aggregate_type="quote",
            aggregate_id=str(uuid.uuid4()),
            payload={},
            schema_version=2,
        )

        mock_db.add.assert_called_once_with(event)
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_called()
        assert event.schema_version == 2
