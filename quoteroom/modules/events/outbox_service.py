"""OutboxService: records domain events in the transactional outbox."""

from sqlalchemy.ext.asyncio import AsyncSession

from quoteroom.models.enums import EventStatus
from quoteroom.models.event_outbox import EventOutbox


class OutboxService:
    """Writes events in the same transaction as the state change they describe."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def publish_event(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict,
        schema_version: int = 1,
    ) -> EventOutbox:
        """Create a new event in the outbox with PENDING status."""
        event = EventOutbox(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            status=EventStatus.PENDING,
            schema_version=schema_version,
        )
        self.session.add(event)
        await self.session.flush()
        return event
