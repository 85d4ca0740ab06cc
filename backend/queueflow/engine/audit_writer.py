"""Audit Writer - Append-only audit events"""
from typing import Any, Dict, List, Optional

from ..domain.enums import EntityType, EventType, LifecycleOperation
from ..domain.models import AuditEvent, TransferOutcome, TransitionOutcome
from ..repositories.audit_repo import AuditRepository
from ..repositories.transaction import TransactionClient
from ..utils.logger import get_logger

logger = get_logger(__name__)

TRANSITION_EVENTS = {
    LifecycleOperation.CALL_NEXT: EventType.TICKET_CALLED,
    LifecycleOperation.COMPLETE: EventType.TICKET_COMPLETED,
    LifecycleOperation.RECALL: EventType.TICKET_RECALLED,
    LifecycleOperation.NO_SHOW: EventType.TICKET_NO_SHOW,
    LifecycleOperation.RECYCLE: EventType.TICKET_RECYCLED,
}


class AuditWriter:
    """
    Write audit events (append-only)

    Each event is written in its own transaction, after the operation it
    describes has committed.
    """

    def __init__(self, client: TransactionClient):
        self.client = client

    async def write_event(
        self,
        event_type: EventType,
        entity_type: EntityType,
        entity_id: int,
        data: Optional[Dict[str, Any]] = None,
        actor_id: Optional[int] = None,
        counter_id: Optional[int] = None
    ) -> AuditEvent:
        """Write a single audit event"""
        async with self.client.transaction() as tx:
            return await AuditRepository(tx).create_event(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                data=data,
                actor_id=actor_id,
                counter_id=counter_id,
            )

    async def list_events(
        self,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[int] = None,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100
    ) -> List[AuditEvent]:
        async with self.client.transaction() as tx:
            return await AuditRepository(tx).list_events(entity_type, entity_id, event_types, limit)

    async def write_transition(self, outcome: TransitionOutcome) -> AuditEvent:
        """Write the event matching a lifecycle transition"""
        ticket = outcome.ticket
        data: Dict[str, Any] = {
            "ticketNumber": ticket.ticket_number,
            "serviceId": ticket.service_id,
            "counterId": outcome.counter_id,
            "agentId": outcome.agent_id,
        }

        if outcome.operation == LifecycleOperation.CALL_NEXT:
            data["previousState"] = outcome.previous_state.value
        elif outcome.operation == LifecycleOperation.COMPLETE:
            data["serviceDurationSeconds"] = ticket.service_duration
            data["actualWaitSeconds"] = ticket.actual_wait
        elif outcome.operation == LifecycleOperation.RECALL:
            data["recallCount"] = ticket.recall_count
        elif outcome.operation == LifecycleOperation.RECYCLE:
            data["requestedPosition"] = outcome.requested_position

        return await self.write_event(
            event_type=TRANSITION_EVENTS[outcome.operation],
            entity_type=EntityType.TICKET,
            entity_id=ticket.id,
            data=data,
            actor_id=outcome.agent_id,
            counter_id=outcome.counter_id,
        )

    async def write_transfer(self, outcome: TransferOutcome) -> AuditEvent:
        """Write ticket transfer event"""
        return await self.write_event(
            event_type=EventType.TICKET_TRANSFERRED,
            entity_type=EntityType.TICKET,
            entity_id=outcome.ticket.id,
            data={
                "ticketNumber": outcome.ticket.ticket_number,
                "previousTicketId": outcome.previous_ticket_id,
                "fromServiceId": outcome.from_service_id,
                "toServiceId": outcome.ticket.service_id,
            },
            actor_id=outcome.agent_id,
            counter_id=outcome.counter_id,
        )
