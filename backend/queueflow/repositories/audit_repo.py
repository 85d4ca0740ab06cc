"""Audit Repository - Data access for audit events"""
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select

from .tables import EventRecord
from .transaction import Transaction
from ..domain.enums import EntityType, EventType
from ..domain.models import AuditEvent
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit event operations (append-only)"""

    def __init__(self, tx: Transaction):
        self.tx = tx

    async def create_event(
        self,
        event_type: EventType,
        entity_type: EntityType,
        entity_id: int,
        data: Optional[Dict[str, Any]] = None,
        actor_id: Optional[int] = None,
        counter_id: Optional[int] = None
    ) -> AuditEvent:
        """Create an audit event (append-only)"""
        record = EventRecord(
            event_type=event_type.value,
            entity_type=entity_type.value,
            entity_id=entity_id,
            data=data or {},
            actor_id=actor_id,
            counter_id=counter_id,
            created_at=utc_now(),
        )
        await self.tx.add(record)
        logger.info(
            f"Created audit event: {event_type.value}",
            extra={"event_type": event_type.value, "counter_id": counter_id}
        )
        return AuditEvent.model_validate(record)

    async def list_events(
        self,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[int] = None,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100
    ) -> List[AuditEvent]:
        """List events, newest first"""
        stmt = select(EventRecord)
        if entity_type is not None:
            stmt = stmt.where(EventRecord.entity_type == entity_type.value)
        if entity_id is not None:
            stmt = stmt.where(EventRecord.entity_id == entity_id)
        if event_types:
            stmt = stmt.where(EventRecord.event_type.in_([et.value for et in event_types]))
        stmt = stmt.order_by(desc(EventRecord.created_at), desc(EventRecord.id)).limit(limit)
        return [AuditEvent.model_validate(record) for record in await self.tx.all(stmt)]
