"""Counter Repository - Data access for service points"""
from typing import List, Optional

from sqlalchemy import case, select, update

from .tables import CounterRecord
from .transaction import Transaction
from ..domain.enums import CounterState


class CounterRepository:
    """Repository for counter operations, bound to a transaction"""

    def __init__(self, tx: Transaction):
        self.tx = tx

    async def get(self, counter_id: int) -> Optional[CounterRecord]:
        return await self.tx.get(CounterRecord, counter_id, for_update=True)

    async def list_all(self) -> List[CounterRecord]:
        return await self.tx.all(select(CounterRecord).order_by(CounterRecord.number, CounterRecord.id))

    async def occupy(self, counter: CounterRecord, ticket_id: int, agent_id: int) -> None:
        """Mark the counter as serving the given ticket"""
        counter.state = CounterState.SERVING.value
        counter.current_ticket_id = ticket_id
        counter.current_agent_id = agent_id
        await self.tx.flush()

    async def release(self, counter_id: int) -> None:
        """Counter back to available with no current ticket"""
        await self.tx.execute(
            update(CounterRecord)
            .where(CounterRecord.id == counter_id)
            .values(state=CounterState.AVAILABLE.value, current_ticket_id=None)
        )

    async def release_all(self) -> int:
        """Clear every counter's ticket; serving counters become available"""
        return await self.tx.execute(
            update(CounterRecord).values(
                current_ticket_id=None,
                state=case(
                    (CounterRecord.state == CounterState.SERVING.value, CounterState.AVAILABLE.value),
                    else_=CounterRecord.state,
                ),
            )
        )
