"""
Ticket Lifecycle Engine - The brain of the system

Moves tickets through waiting -> called -> completed / no_show, and handles
recall, recycle and transfer. Every operation is a single transaction:
read, validate the guard, write ticket and counter state, build the
post-transition snapshot(s), commit. Side effects (audit, broadcast) are
the caller's business and happen after commit.
"""
from datetime import datetime
from typing import Optional

from .service_resolver import ServiceResolver
from .snapshot import QueueSnapshotBuilder
from ..domain.enums import LifecycleOperation, TicketState
from ..domain.errors import (
    AgentNotFoundError, AuthorizationError, CounterNotFoundError, InvalidStateError,
    NoTicketsWaitingError, TicketAlreadyCompletedError, TicketNotFoundError, ValidationError
)
from ..domain.models import Ticket, TransferOutcome, TransitionOutcome
from ..repositories.counter_repo import CounterRepository
from ..repositories.service_repo import ServiceRepository
from ..repositories.tables import CounterRecord, ServiceRecord, TicketRecord
from ..repositories.ticket_repo import TicketRepository
from ..repositories.transaction import Transaction, TransactionClient
from ..utils.logger import get_logger
from ..utils.time import elapsed_seconds, utc_now

logger = get_logger(__name__)

NOT_ASSIGNED = "Ticket not found or not assigned to this counter/agent"
NOT_CALLED = "Ticket not found or not in called state"


class TicketLifecycleEngine:
    """
    Ticket state machine over the transactional store.

    The engine is the only writer of ticket and counter state.
    """

    def __init__(
        self,
        client: TransactionClient,
        snapshots: Optional[QueueSnapshotBuilder] = None,
        resolver: Optional[ServiceResolver] = None
    ):
        self.client = client
        self.snapshots = snapshots or QueueSnapshotBuilder()
        self.resolver = resolver or ServiceResolver()

    # =========================================================================
    # Call Next
    # =========================================================================

    async def call_next(
        self,
        counter_id: int,
        agent_id: int,
        service_id: Optional[int] = None,
        ticket_id: Optional[int] = None
    ) -> TransitionOutcome:
        """
        Claim a ticket from a waiting pool for this counter.

        With ``ticket_id`` that exact ticket is claimed (it must be waiting
        and the agent must be assigned to its service). Otherwise the head
        of the resolved service's pool is claimed in canonical order.
        """
        async with self.client.transaction() as tx:
            counter = await self._get_counter(tx, counter_id)
            await self._get_agent(tx, agent_id)
            tickets = TicketRepository(tx)

            if ticket_id is not None:
                record = await tickets.find_in_pool(ticket_id)
                if record is None:
                    raise TicketNotFoundError("Requested ticket is not available for calling")
                if not await self.resolver.is_authorized(tx, agent_id, record.service_id):
                    raise AuthorizationError("Agent is not authorized for this service")
                service = await tx.get(ServiceRecord, record.service_id)
            else:
                service = await self.resolver.resolve(tx, agent_id, counter, service_id)
                record = await tickets.next_waiting(service.id)
                if record is None:
                    raise NoTicketsWaitingError("No tickets waiting in queue")

            previous_state = TicketState(record.state)
            now = utc_now()
            record.state = TicketState.CALLED.value
            record.called_at = now
            record.served_at = now
            record.counter_id = counter_id
            record.agent_id = agent_id
            record.recall_count = (record.recall_count or 0) + 1
            await CounterRepository(tx).occupy(counter, record.id, agent_id)

            outcome = TransitionOutcome(
                operation=LifecycleOperation.CALL_NEXT,
                ticket=Ticket.model_validate(record),
                service_name=service.name,
                previous_state=previous_state,
                counter_id=counter_id,
                agent_id=agent_id,
                queue=await self.snapshots.build(tx, record.service_id),
                occurred_at=now,
            )

        logger.info(
            f"Called ticket {outcome.ticket.ticket_number}",
            extra={
                "ticket_id": outcome.ticket.id,
                "counter_id": counter_id,
                "agent_id": agent_id,
                "service_id": outcome.ticket.service_id,
                "operation": LifecycleOperation.CALL_NEXT.value,
            }
        )
        return outcome

    # =========================================================================
    # Complete / Recall / No-show
    # =========================================================================

    async def complete(
        self,
        ticket_id: int,
        counter_id: int,
        agent_id: int,
        notes: Optional[str] = None
    ) -> TransitionOutcome:
        """Finish serving a ticket and free the counter"""
        async with self.client.transaction() as tx:
            record = await TicketRepository(tx).find_assigned(ticket_id, counter_id, agent_id)
            if record is None:
                raise TicketNotFoundError(NOT_ASSIGNED)
            # Only completed is refused: a no_show ticket can still be completed,
            # and the counter is released even if it has called someone else since.
            if record.state == TicketState.COMPLETED.value:
                raise TicketAlreadyCompletedError("Ticket already completed")

            previous_state = TicketState(record.state)
            now = utc_now()
            served_at = record.served_at or record.called_at
            record.state = TicketState.COMPLETED.value
            record.completed_at = now
            record.actual_wait = elapsed_seconds(record.created_at, served_at)
            record.service_duration = elapsed_seconds(served_at, now)
            if notes is not None and notes.strip():
                record.notes = notes.strip()
            await tx.flush()
            await CounterRepository(tx).release(counter_id)

            outcome = await self._outcome(
                tx, LifecycleOperation.COMPLETE, record, previous_state, counter_id, agent_id, now
            )

        self._log_transition(outcome)
        return outcome

    async def recall(self, ticket_id: int, counter_id: int, agent_id: int) -> TransitionOutcome:
        """Announce a called ticket again"""
        async with self.client.transaction() as tx:
            record = await TicketRepository(tx).find_assigned(
                ticket_id, counter_id, agent_id, state=TicketState.CALLED
            )
            if record is None:
                raise TicketNotFoundError(NOT_CALLED)

            now = utc_now()
            record.recall_count = (record.recall_count or 0) + 1
            record.called_at = now
            await tx.flush()

            outcome = await self._outcome(
                tx, LifecycleOperation.RECALL, record, TicketState.CALLED, counter_id, agent_id, now
            )

        self._log_transition(outcome)
        return outcome

    async def no_show(self, ticket_id: int, counter_id: int, agent_id: int) -> TransitionOutcome:
        """Close a called ticket whose customer never showed up"""
        async with self.client.transaction() as tx:
            record = await TicketRepository(tx).find_assigned(
                ticket_id, counter_id, agent_id, state=TicketState.CALLED
            )
            if record is None:
                raise TicketNotFoundError(NOT_CALLED)

            now = utc_now()
            record.state = TicketState.NO_SHOW.value
            record.completed_at = now
            await tx.flush()
            await CounterRepository(tx).release(counter_id)

            outcome = await self._outcome(
                tx, LifecycleOperation.NO_SHOW, record, TicketState.CALLED, counter_id, agent_id, now
            )

        self._log_transition(outcome)
        return outcome

    # =========================================================================
    # Recycle
    # =========================================================================

    async def recycle(
        self,
        ticket_id: int,
        counter_id: int,
        agent_id: int,
        position: int = 3
    ) -> TransitionOutcome:
        """
        Put a called ticket back into its service's waiting pool.

        The requested position is advisory: it is reported in the outcome
        but the ticket keeps its canonical place (priority, created_at).
        """
        async with self.client.transaction() as tx:
            record = await TicketRepository(tx).find_assigned(ticket_id, counter_id, agent_id)
            if record is None:
                raise TicketNotFoundError(NOT_ASSIGNED)
            if record.state != TicketState.CALLED.value:
                raise InvalidStateError("Ticket is not currently being served")

            now = utc_now()
            record.state = TicketState.WAITING.value
            record.counter_id = None
            record.agent_id = None
            record.called_at = None
            record.served_at = None
            await tx.flush()
            await CounterRepository(tx).release(counter_id)

            outcome = await self._outcome(
                tx, LifecycleOperation.RECYCLE, record, TicketState.CALLED, counter_id, agent_id, now,
                requested_position=position,
            )

        self._log_transition(outcome)
        return outcome

    # =========================================================================
    # Transfer
    # =========================================================================

    async def transfer(
        self,
        ticket_id: int,
        target_service_id: int,
        counter_id: int,
        agent_id: int
    ) -> TransferOutcome:
        """
        Move a called ticket into another service's waiting pool.

        The ticket is re-created in the target service (same number, customer
        fields and created_at) and the original row is deleted.
        """
        async with self.client.transaction() as tx:
            tickets = TicketRepository(tx)
            record = await tickets.find_assigned(ticket_id, counter_id, agent_id, state=TicketState.CALLED)
            if record is None:
                raise TicketNotFoundError(NOT_CALLED)

            target = await ServiceRepository(tx).get_active(target_service_id)
            if target is None:
                raise ValidationError("Invalid target service")
            if target.id == record.service_id:
                raise ValidationError("Cannot transfer to the same service")

            now = utc_now()
            from_service_id = record.service_id
            replacement = await tickets.insert(TicketRecord(
                ticket_number=record.ticket_number,
                service_id=target.id,
                state=TicketState.WAITING.value,
                priority=record.priority or 0,
                customer_name=record.customer_name,
                customer_phone=record.customer_phone,
                customer_email=record.customer_email,
                created_at=record.created_at or now,
                estimated_wait=record.estimated_wait,
                original_service_id=record.original_service_id or record.service_id,
                transferred_at=now,
                recall_count=record.recall_count or 0,
                notes=record.notes,
            ))
            await CounterRepository(tx).release(counter_id)
            await tickets.delete(record)

            outcome = TransferOutcome(
                ticket=Ticket.model_validate(replacement),
                previous_ticket_id=ticket_id,
                from_service_id=from_service_id,
                target_service_name=target.name,
                counter_id=counter_id,
                agent_id=agent_id,
                from_queue=await self.snapshots.build(tx, from_service_id),
                to_queue=await self.snapshots.build(tx, target.id),
            )

        logger.info(
            f"Transferred ticket {outcome.ticket.ticket_number} to service {outcome.ticket.service_id}",
            extra={
                "ticket_id": outcome.ticket.id,
                "counter_id": counter_id,
                "agent_id": agent_id,
                "service_id": outcome.ticket.service_id,
                "operation": LifecycleOperation.TRANSFER.value,
            }
        )
        return outcome

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_counter(self, tx: Transaction, counter_id: int) -> CounterRecord:
        counter = await CounterRepository(tx).get(counter_id)
        if counter is None:
            raise CounterNotFoundError("Counter not found")
        return counter

    async def _get_agent(self, tx: Transaction, agent_id: int) -> None:
        agent = await ServiceRepository(tx).get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError("Agent not found")

    async def _outcome(
        self,
        tx: Transaction,
        operation: LifecycleOperation,
        record: TicketRecord,
        previous_state: TicketState,
        counter_id: int,
        agent_id: int,
        occurred_at: datetime,
        requested_position: Optional[int] = None
    ) -> TransitionOutcome:
        service = await tx.get(ServiceRecord, record.service_id)
        return TransitionOutcome(
            operation=operation,
            ticket=Ticket.model_validate(record),
            service_name=service.name if service else "",
            previous_state=previous_state,
            counter_id=counter_id,
            agent_id=agent_id,
            queue=await self.snapshots.build(tx, record.service_id),
            occurred_at=occurred_at,
            requested_position=requested_position,
        )

    @staticmethod
    def _log_transition(outcome: TransitionOutcome) -> None:
        logger.info(
            f"Ticket {outcome.ticket.ticket_number}: {outcome.previous_state.value} -> {outcome.ticket.state.value}",
            extra={
                "ticket_id": outcome.ticket.id,
                "counter_id": outcome.counter_id,
                "agent_id": outcome.agent_id,
                "service_id": outcome.ticket.service_id,
                "operation": outcome.operation.value,
            }
        )
