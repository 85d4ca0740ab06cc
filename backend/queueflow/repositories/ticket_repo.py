"""Ticket Repository - Data access for tickets"""
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.sql import Select

from .tables import TicketRecord
from .transaction import Transaction
from ..domain.enums import TicketState, WAITING_POOL_STATES
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Canonical waiting-pool order, shared by call-next and the snapshot builder
WAITING_ORDER = (
    desc(TicketRecord.priority),
    asc(TicketRecord.created_at),
    asc(TicketRecord.id),
)

_POOL_VALUES = [state.value for state in WAITING_POOL_STATES]


def waiting_pool_query(service_id: int) -> Select:
    """Select of a service's waiting pool in canonical order"""
    return (
        select(TicketRecord)
        .where(TicketRecord.service_id == service_id)
        .where(TicketRecord.state.in_(_POOL_VALUES))
        .order_by(*WAITING_ORDER)
    )


class TicketRepository:
    """Repository for ticket operations, bound to a transaction"""

    def __init__(self, tx: Transaction):
        self.tx = tx

    # =========================================================================
    # Reads
    # =========================================================================

    async def find_in_pool(self, ticket_id: int) -> Optional[TicketRecord]:
        """Ticket by ID if it is waiting or recycled"""
        stmt = (
            select(TicketRecord)
            .where(TicketRecord.id == ticket_id)
            .where(TicketRecord.state.in_(_POOL_VALUES))
            .with_for_update()
        )
        return await self.tx.first(stmt)

    async def find_assigned(
        self,
        ticket_id: int,
        counter_id: int,
        agent_id: int,
        state: Optional[TicketState] = None
    ) -> Optional[TicketRecord]:
        """Ticket by ID held by this counter and agent, optionally in a given state"""
        stmt = (
            select(TicketRecord)
            .where(TicketRecord.id == ticket_id)
            .where(TicketRecord.counter_id == counter_id)
            .where(TicketRecord.agent_id == agent_id)
        )
        if state is not None:
            stmt = stmt.where(TicketRecord.state == state.value)
        return await self.tx.first(stmt.with_for_update())

    async def next_waiting(self, service_id: int) -> Optional[TicketRecord]:
        """Head of the service's waiting pool"""
        return await self.tx.first(waiting_pool_query(service_id).limit(1).with_for_update())

    async def list_waiting(self, service_id: int) -> List[TicketRecord]:
        """Whole waiting pool in canonical order"""
        return await self.tx.all(waiting_pool_query(service_id))

    async def count_in_states(self, service_id: int, states: Iterable[TicketState]) -> int:
        stmt = (
            select(func.count(TicketRecord.id))
            .where(TicketRecord.service_id == service_id)
            .where(TicketRecord.state.in_([s.value for s in states]))
        )
        return int(await self.tx.scalar(stmt) or 0)

    async def count_waiting(self, service_id: int) -> int:
        return await self.count_in_states(service_id, WAITING_POOL_STATES)

    async def count_serving(self, service_id: int) -> int:
        return await self.count_in_states(service_id, (TicketState.CALLED,))

    async def count_all(self) -> int:
        return int(await self.tx.scalar(select(func.count(TicketRecord.id))) or 0)

    async def numbers_in_service(self, service_id: int, numbers: Sequence[str]) -> Set[str]:
        """Subset of ``numbers`` already used by tickets of the service"""
        if not numbers:
            return set()
        stmt = (
            select(TicketRecord.ticket_number)
            .where(TicketRecord.service_id == service_id)
            .where(TicketRecord.ticket_number.in_(list(numbers)))
        )
        return set(await self.tx.all(stmt))

    async def lowest_called_numbers(self) -> Dict[int, str]:
        """Lowest called ticket number per service"""
        stmt = (
            select(TicketRecord.service_id, func.min(TicketRecord.ticket_number))
            .where(TicketRecord.state == TicketState.CALLED.value)
            .group_by(TicketRecord.service_id)
        )
        return {service_id: number for service_id, number in await self.tx.rows(stmt)}

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert(self, record: TicketRecord) -> TicketRecord:
        """Insert a ticket and populate its ID"""
        await self.tx.add(record)
        logger.info(
            f"Inserted ticket {record.ticket_number}",
            extra={"ticket_id": record.id, "service_id": record.service_id}
        )
        return record

    async def delete(self, record: TicketRecord) -> None:
        await self.tx.delete(record)

    async def delete_all(self) -> int:
        """Delete every ticket; returns the number removed"""
        return await self.tx.execute(delete(TicketRecord))
