"""System reset and queue preset"""
import logging

import pytest
from sqlalchemy import func, select

from queueflow.domain.enums import CounterState, EventType, RealtimeEvent, TicketState
from queueflow.domain.errors import ServiceNotFoundError, TicketRangeExhaustedError, ValidationError
from queueflow.repositories.settings_repo import SettingsRepository
from queueflow.repositories.tables import CounterRecord, ServiceRecord, TicketRecord
from queueflow.services.reset_service import LAST_RESET_KEY


async def ticket_count(container) -> int:
    async with container.client.transaction() as tx:
        return await tx.scalar(select(func.count()).select_from(TicketRecord))


# =============================================================================
# System reset
# =============================================================================

async def test_reset_clears_queues_and_numbering(container, engine, kiosk):
    await kiosk.create_ticket(1)
    await kiosk.create_ticket(1)
    await kiosk.create_ticket(2)
    await engine.call_next(counter_id=3, agent_id=7)

    summary = await container.reset.perform_system_reset(reason="end of day")

    assert summary.skipped is False
    assert summary.deleted_tickets == 3
    assert summary.reason == "end of day"
    assert [s.id for s in summary.services] == [1, 2]
    assert await ticket_count(container) == 0

    async with container.client.transaction() as tx:
        counter = await tx.get(CounterRecord, 3)
        assert counter.state == CounterState.AVAILABLE.value
        assert counter.current_ticket_id is None
        assert (await tx.get(ServiceRecord, 1)).current_number == 0
        assert await SettingsRepository(tx).get(LAST_RESET_KEY) is not None

    # numbering and ids start over
    issued = await kiosk.create_ticket(1)
    assert issued.ticket.ticket_number == "A001"
    assert issued.ticket.id == 1


async def test_reset_records_state_and_side_effects(container, subscriber):
    summary = await container.reset.perform_system_reset(reason="manual")

    status = container.reset.status()
    assert status["last_reset_at"] == summary.reset_at
    assert status["last_reset_reason"] == "manual"
    assert status["in_progress"] is False

    updates = subscriber.of(RealtimeEvent.QUEUE_UPDATED.value)
    assert [u["serviceId"] for u in updates] == [1, 2]
    assert all(u["queue"]["waiting"] == 0 for u in updates)
    alerts = subscriber.of(RealtimeEvent.SYSTEM_ALERT.value)
    assert alerts[0]["message"] == "Queues reset (manual)."
    assert alerts[0]["level"] == "warning"

    events = await container.audit.list_events(event_types=[EventType.SYSTEM_RESET])
    assert len(events) == 1
    assert events[0].data["reason"] == "manual"
    assert events[0].data["initiatedBy"] == "admin"


async def test_silent_reset_sends_no_alert(container, subscriber):
    await container.reset.perform_system_reset(silent=True)

    assert RealtimeEvent.SYSTEM_ALERT.value not in subscriber.events()
    assert RealtimeEvent.QUEUE_UPDATED.value in subscriber.events()


async def test_reset_skipped_while_running(container, kiosk):
    await kiosk.create_ticket(1)
    container.reset.in_progress = True

    summary = await container.reset.perform_system_reset()

    assert summary.skipped is True
    assert summary.message == "Reset already in progress"
    assert await ticket_count(container) == 1


async def test_last_reset_survives_restart(container, settings):
    from queueflow.container import build_container

    summary = await container.reset.perform_system_reset()

    fresh = build_container(settings)
    try:
        restored = await fresh.reset.load_last_reset()
    finally:
        await fresh.database.dispose()
    assert restored is not None
    assert abs((restored - summary.reset_at).total_seconds()) < 1


# =============================================================================
# Queue preset
# =============================================================================

async def test_preset_on_empty_queue(container, subscriber):
    result = await container.reset.preset_service_queue(service_id=1, start_number=10, count=5)

    numbers = [t.ticket_number for t in result.inserted_tickets]
    assert numbers == ["A011", "A012", "A013", "A014", "A015"]
    assert result.skipped_tickets == []
    assert result.final_number == 15
    assert result.service.prefix == "A"
    assert all(t.state == TicketState.WAITING for t in result.inserted_tickets)
    assert [t.ticket_number for t in result.queue.tickets] == numbers
    assert [t.estimated_wait for t in result.inserted_tickets] == [300, 600, 900, 1200, 1500]

    async with container.client.transaction() as tx:
        assert (await tx.get(ServiceRecord, 1)).current_number >= 15

    assert RealtimeEvent.QUEUE_UPDATED.value in subscriber.events()
    events = await container.audit.list_events(event_types=[EventType.QUEUE_PRESET])
    assert events[0].data["inserted"] == 5


async def test_preset_skips_existing_numbers(container, kiosk):
    await kiosk.create_ticket(1)
    await kiosk.create_ticket(1)

    result = await container.reset.preset_service_queue(service_id=1, start_number=0, count=4)

    assert result.skipped_tickets == ["A001", "A002"]
    assert [t.ticket_number for t in result.inserted_tickets] == ["A003", "A004"]
    assert result.queue.waiting == 4


async def test_preset_never_lowers_current_number(container, kiosk):
    for _ in range(3):
        await kiosk.create_ticket(2)

    result = await container.reset.preset_service_queue(service_id=2, start_number=0, count=1)

    assert result.final_number == 3
    assert result.skipped_tickets == ["B001"]


async def test_preset_then_kiosk_continues_numbering(container, kiosk):
    await container.reset.preset_service_queue(service_id=1, start_number=10, count=5)

    issued = await kiosk.create_ticket(1)

    assert issued.ticket.ticket_number == "A016"



async def test_preset_past_range_end_is_logged(container, kiosk, caplog):
    with caplog.at_level(logging.WARNING, logger="queueflow.services.reset_service"):
        result = await container.reset.preset_service_queue(service_id=1, start_number=997, count=5)

    assert [t.ticket_number for t in result.inserted_tickets] == ["A998", "A999", "A1000", "A1001", "A1002"]
    assert result.final_number == 1002
    assert "runs past range end 999" in caplog.text

    with pytest.raises(TicketRangeExhaustedError):
        await kiosk.create_ticket(1)


@pytest.mark.parametrize("kwargs,message", [
    ({"service_id": 0, "start_number": 0, "count": 1}, "serviceId must be a positive integer"),
    ({"service_id": 1, "start_number": -1, "count": 1}, "startNumber must be zero or positive integer"),
    ({"service_id": 1, "start_number": 0, "count": 0}, "count must be a positive integer"),
    ({"service_id": 1, "start_number": 0, "count": 51}, "count may not exceed 50 tickets per request"),
])
async def test_preset_validation(container, kwargs, message):
    with pytest.raises(ValidationError) as exc:
        await container.reset.preset_service_queue(**kwargs)
    assert exc.value.message == message
    assert await ticket_count(container) == 0


async def test_preset_inactive_service(container):
    with pytest.raises(ServiceNotFoundError) as exc:
        await container.reset.preset_service_queue(service_id=3, start_number=0, count=2)
    assert exc.value.message == "Service not found or inactive"
