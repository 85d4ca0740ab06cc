"""Realtime broadcaster fan-out and channel filtering"""
from queueflow.domain.enums import RealtimeEvent
from queueflow.domain.models import QueuedTicket, QueueSnapshot
from queueflow.realtime.broadcaster import RealtimeBroadcaster, service_channel
from queueflow.utils.time import utc_now

from ..conftest import RecordingSubscriber


def snapshot(service_id=1):
    return QueueSnapshot(
        service_id=service_id,
        waiting=1,
        serving=0,
        tickets=[QueuedTicket(id=5, ticket_number="A005", service_id=service_id, created_at=utc_now())],
    )


async def test_envelope_and_unfiltered_subscriber():
    broadcaster = RealtimeBroadcaster()
    everything = RecordingSubscriber()
    await broadcaster.subscribe(everything)

    delivered = await broadcaster.publish(RealtimeEvent.SYSTEM_ALERT, {"message": "hi"}, ["kiosk"])

    assert delivered == 1
    assert everything.messages == [{"event": "system-alert", "data": {"message": "hi"}}]


async def test_channel_filtering():
    broadcaster = RealtimeBroadcaster()
    kiosk = RecordingSubscriber()
    monitor = RecordingSubscriber()
    await broadcaster.subscribe(kiosk, ["kiosk"])
    await broadcaster.subscribe(monitor, ["monitor"])

    await broadcaster.system_alert("Counter 3 closing", targets=["monitor"])

    assert kiosk.messages == []
    assert monitor.of("system-alert")[0]["message"] == "Counter 3 closing"
    assert monitor.of("system-alert")[0]["level"] == "info"


async def test_queue_updated_reaches_service_channel():
    broadcaster = RealtimeBroadcaster()
    service_one = RecordingSubscriber()
    service_two = RecordingSubscriber()
    await broadcaster.subscribe(service_one, [service_channel(1)])
    await broadcaster.subscribe(service_two, [service_channel(2)])

    await broadcaster.queue_updated(snapshot(1))

    assert service_two.messages == []
    data = service_one.of("queue-updated")[0]
    assert data["serviceId"] == 1
    assert data["queue"]["tickets"][0]["ticketNumber"] == "A005"
    assert data["queue"]["tickets"][0]["ticket_number"] == "A005"


async def test_failing_subscriber_is_dropped():
    broadcaster = RealtimeBroadcaster()
    healthy = RecordingSubscriber()
    broken = RecordingSubscriber(fail=True)
    await broadcaster.subscribe(healthy)
    await broadcaster.subscribe(broken)

    delivered = await broadcaster.publish(RealtimeEvent.QUEUE_UPDATED, {"serviceId": 1})

    assert delivered == 1
    assert broadcaster.subscriber_count == 1
    assert len(healthy.messages) == 1


async def test_join_leave_and_unsubscribe():
    broadcaster = RealtimeBroadcaster()
    display = RecordingSubscriber()
    subscription_id = await broadcaster.subscribe(display, ["kiosk"])

    assert await broadcaster.join(subscription_id, "monitor") == {"kiosk", "monitor"}
    assert await broadcaster.leave(subscription_id, "kiosk") == {"monitor"}
    await broadcaster.publish(RealtimeEvent.SYSTEM_ALERT, {}, ["kiosk"])
    await broadcaster.publish(RealtimeEvent.SYSTEM_ALERT, {}, ["monitor"])
    assert len(display.messages) == 1

    await broadcaster.unsubscribe(subscription_id)
    assert broadcaster.subscriber_count == 0
    assert await broadcaster.join(subscription_id, "kiosk") == set()
    assert await broadcaster.send_to(subscription_id, RealtimeEvent.PONG, {}) is False


async def test_lifecycle_events_for_terminal_operations(container, subscriber, kiosk):
    issued = await kiosk.create_ticket(1)
    subscriber.messages.clear()

    await container.terminal.call_next(counter_id=3, agent_id=7)
    await container.terminal.recycle(issued.ticket.id, counter_id=3, agent_id=7)

    assert subscriber.events() == [
        "ticket-called", "queue-updated", "ticket-recycled", "queue-updated",
    ]
    called = subscriber.of("ticket-called")[0]
    assert called["ticket"]["number"] == "A001"
    assert called["counter"]["id"] == 3
    assert called["agent"] == {"id": 7}
    recycled = subscriber.of("ticket-recycled")[0]
    assert recycled["position"] == 3


async def test_staff_only_recycle_event(container, kiosk):
    kiosk_display = RecordingSubscriber()
    await container.broadcaster.subscribe(kiosk_display, ["kiosk"])
    issued = await kiosk.create_ticket(1)
    await container.terminal.call_next(counter_id=3, agent_id=7)

    await container.terminal.recycle(issued.ticket.id, counter_id=3, agent_id=7)

    assert "ticket-recycled" not in kiosk_display.events()


async def test_transfer_broadcasts_both_queues(container, subscriber, kiosk):
    issued = await kiosk.create_ticket(1)
    await container.terminal.call_next(counter_id=3, agent_id=7)
    subscriber.messages.clear()

    await container.terminal.transfer(issued.ticket.id, 2, counter_id=3, agent_id=7)

    assert subscriber.events() == ["ticket-transferred", "queue-updated", "queue-updated"]
    transferred = subscriber.of("ticket-transferred")[0]["ticket"]
    assert transferred["fromServiceId"] == 1
    assert transferred["toServiceId"] == 2
    assert transferred["toServiceName"] == "Payments"
    assert [u["serviceId"] for u in subscriber.of("queue-updated")] == [1, 2]


async def test_broadcast_failure_does_not_fail_operation(container, kiosk, monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("hub down")

    monkeypatch.setattr(container.broadcaster, "ticket_called", explode)
    await kiosk.create_ticket(1)

    outcome = await container.terminal.call_next(counter_id=3, agent_id=7)

    assert outcome.ticket.ticket_number == "A001"
    events = await container.audit.list_events()
    assert events[0].event_type.value == "TICKET_CALLED"
