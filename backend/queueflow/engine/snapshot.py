"""Queue Snapshot Builder - Point-in-time read of a service queue"""
from ..domain.models import QueuedTicket, QueueSnapshot
from ..repositories.ticket_repo import TicketRepository
from ..repositories.transaction import Transaction


class QueueSnapshotBuilder:
    """
    Build queue snapshots inside the caller's transaction.

    ``waiting`` counts the waiting pool (waiting + recycled), ``serving``
    counts called tickets, ``tickets`` lists the pool in canonical order.
    """

    async def build(self, tx: Transaction, service_id: int) -> QueueSnapshot:
        tickets = TicketRepository(tx)
        pool = await tickets.list_waiting(service_id)
        serving = await tickets.count_serving(service_id)
        return QueueSnapshot(
            service_id=service_id,
            waiting=len(pool),
            serving=serving,
            tickets=[QueuedTicket.model_validate(record) for record in pool],
        )

    @staticmethod
    def empty(service_id: int) -> QueueSnapshot:
        """Snapshot of a service with nothing queued"""
        return QueueSnapshot.empty(service_id)
