"""Queue snapshot builder"""
from datetime import timedelta

from queueflow.domain.enums import TicketState
from queueflow.engine.snapshot import QueueSnapshotBuilder
from queueflow.repositories.tables import TicketRecord
from queueflow.utils.time import utc_now


async def insert_ticket(container, number, priority=0, state=TicketState.WAITING, age_seconds=0, **fields):
    async with container.client.transaction() as tx:
        record = TicketRecord(
            ticket_number=number,
            service_id=1,
            priority=priority,
            state=state.value,
            created_at=utc_now() - timedelta(seconds=age_seconds),
            recall_count=0,
            **fields,
        )
        await tx.add(record)
        return record.id


async def build(container, service_id=1):
    async with container.client.transaction() as tx:
        return await QueueSnapshotBuilder().build(tx, service_id)


async def test_pool_in_canonical_order(container):
    await insert_ticket(container, "A001", priority=0, age_seconds=50)
    await insert_ticket(container, "A002", priority=1, age_seconds=40)
    await insert_ticket(container, "A003", priority=1, age_seconds=45)
    await insert_ticket(container, "A004", priority=2, age_seconds=10)
    await insert_ticket(container, "A005", priority=0, age_seconds=60)

    snapshot = await build(container)

    assert [t.ticket_number for t in snapshot.tickets] == ["A004", "A003", "A002", "A005", "A001"]


async def test_equal_timestamps_break_ties_by_id(container):
    created_at = utc_now()
    async with container.client.transaction() as tx:
        for number in ("A002", "A001"):
            await tx.add(TicketRecord(ticket_number=number, service_id=1, state="waiting",
                                      priority=0, created_at=created_at, recall_count=0))

    snapshot = await build(container)

    assert [t.ticket_number for t in snapshot.tickets] == ["A002", "A001"]


async def test_counts_recycled_as_waiting(container, engine, kiosk):
    await kiosk.create_ticket(1)
    await insert_ticket(container, "A090", state=TicketState.RECYCLED, age_seconds=30)
    await insert_ticket(container, "A091", state=TicketState.COMPLETED, age_seconds=30)
    await kiosk.create_ticket(1)
    await engine.call_next(counter_id=3, agent_id=7)

    snapshot = await build(container)

    assert snapshot.service_id == 1
    assert snapshot.waiting == 2
    assert snapshot.serving == 1
    assert [t.ticket_number for t in snapshot.tickets] == ["A001", "A002"]
    assert snapshot.tickets[0].is_recycled is False


async def test_recycled_ticket_flag(container):
    await insert_ticket(container, "A010", state=TicketState.RECYCLED, customer_name="Lee")

    snapshot = await build(container)

    assert snapshot.tickets[0].is_recycled is True
    assert snapshot.tickets[0].customer_name == "Lee"


async def test_empty_snapshot(container):
    snapshot = await build(container, service_id=2)

    assert snapshot.waiting == 0
    assert snapshot.serving == 0
    assert snapshot.tickets == []
    assert QueueSnapshotBuilder.empty(2) == snapshot
