"""Terminal Service - Agent-facing queue operations"""
from typing import List, Optional, Tuple

from ..domain.enums import LifecycleOperation
from ..domain.errors import ServiceNotFoundError
from ..domain.models import (
    AgentServiceAssignment, Counter, QueueSnapshot, Service, TransferOutcome, TransitionOutcome
)
from ..engine.audit_writer import AuditWriter
from ..engine.lifecycle import TicketLifecycleEngine
from ..realtime.broadcaster import RealtimeBroadcaster
from ..repositories.counter_repo import CounterRepository
from ..repositories.service_repo import ServiceRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TerminalService:
    """
    Runs lifecycle operations for the terminal and performs their
    post-commit side effects.

    Audit and broadcast failures are logged and never reach the caller:
    the transition has already committed.
    """

    def __init__(
        self,
        engine: TicketLifecycleEngine,
        audit: AuditWriter,
        broadcaster: RealtimeBroadcaster,
        default_recycle_position: int = 3
    ):
        self.engine = engine
        self.audit = audit
        self.broadcaster = broadcaster
        self.default_recycle_position = default_recycle_position

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    async def call_next(
        self,
        counter_id: int,
        agent_id: int,
        service_id: Optional[int] = None,
        ticket_id: Optional[int] = None
    ) -> TransitionOutcome:
        outcome = await self.engine.call_next(counter_id, agent_id, service_id=service_id, ticket_id=ticket_id)
        await self._after_transition(outcome)
        return outcome

    async def complete(
        self,
        ticket_id: int,
        counter_id: int,
        agent_id: int,
        notes: Optional[str] = None
    ) -> TransitionOutcome:
        outcome = await self.engine.complete(ticket_id, counter_id, agent_id, notes=notes)
        await self._after_transition(outcome)
        return outcome

    async def recall(self, ticket_id: int, counter_id: int, agent_id: int) -> TransitionOutcome:
        outcome = await self.engine.recall(ticket_id, counter_id, agent_id)
        await self._after_transition(outcome)
        return outcome

    async def no_show(self, ticket_id: int, counter_id: int, agent_id: int) -> TransitionOutcome:
        outcome = await self.engine.no_show(ticket_id, counter_id, agent_id)
        await self._after_transition(outcome)
        return outcome

    async def recycle(
        self,
        ticket_id: int,
        counter_id: int,
        agent_id: int,
        position: Optional[int] = None
    ) -> TransitionOutcome:
        outcome = await self.engine.recycle(
            ticket_id, counter_id, agent_id,
            position=position or self.default_recycle_position
        )
        await self._after_transition(outcome)
        return outcome

    async def transfer(
        self,
        ticket_id: int,
        target_service_id: int,
        counter_id: int,
        agent_id: int
    ) -> TransferOutcome:
        outcome = await self.engine.transfer(ticket_id, target_service_id, counter_id, agent_id)

        try:
            await self.audit.write_transfer(outcome)
        except Exception as e:
            logger.error(f"Event logging failed for transfer: {e}", extra={"ticket_id": outcome.ticket.id})

        try:
            await self.broadcaster.ticket_transferred(outcome)
            await self.broadcaster.queue_updated(outcome.from_queue)
            await self.broadcaster.queue_updated(outcome.to_queue)
        except Exception as e:
            logger.error(f"Broadcast failed for transfer: {e}", extra={"ticket_id": outcome.ticket.id})

        return outcome

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_queue(self, service_id: int) -> Tuple[Service, QueueSnapshot]:
        """Active service and its current snapshot"""
        async with self.engine.client.transaction() as tx:
            record = await ServiceRepository(tx).get_active(service_id)
            if record is None:
                raise ServiceNotFoundError("Service not found")
            snapshot = await self.engine.snapshots.build(tx, service_id)
            return Service.model_validate(record), snapshot

    async def agent_services(self, agent_id: int) -> List[AgentServiceAssignment]:
        async with self.engine.client.transaction() as tx:
            return await ServiceRepository(tx).assignments_for_agent(agent_id)

    async def list_counters(self) -> List[Counter]:
        async with self.engine.client.transaction() as tx:
            return [Counter.model_validate(c) for c in await CounterRepository(tx).list_all()]

    # =========================================================================
    # Side effects
    # =========================================================================

    async def _after_transition(self, outcome: TransitionOutcome) -> None:
        operation = outcome.operation
        extra = {"ticket_id": outcome.ticket.id, "operation": operation.value}

        try:
            await self.audit.write_transition(outcome)
        except Exception as e:
            logger.error(f"Event logging failed for {operation.value}: {e}", extra=extra)

        try:
            if operation in (LifecycleOperation.CALL_NEXT, LifecycleOperation.RECALL):
                await self.broadcaster.ticket_called(outcome)
            elif operation in (LifecycleOperation.COMPLETE, LifecycleOperation.NO_SHOW):
                await self.broadcaster.ticket_completed(outcome)
            elif operation == LifecycleOperation.RECYCLE:
                await self.broadcaster.ticket_recycled(outcome)
            await self.broadcaster.queue_updated(outcome.queue)
        except Exception as e:
            logger.error(f"Broadcast failed for {operation.value}: {e}", extra=extra)
