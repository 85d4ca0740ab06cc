"""
Realtime Broadcaster - Push lifecycle outcomes to connected displays

Subscribers are anything with an ``async send_json(dict)`` method (a
FastAPI WebSocket in production, a recording fake in tests). Every message
is an envelope ``{"event": name, "data": payload}``. A subscriber with no
channels receives every event.
"""
import asyncio
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from ..domain.enums import Channel, RealtimeEvent
from ..domain.models import IssuedTicket, QueueSnapshot, TransferOutcome, TransitionOutcome
from ..utils.idgen import generate_subscriber_id
from ..utils.logger import get_logger
from ..utils.time import format_iso, utc_now
from .. import views

logger = get_logger(__name__)

ALL_DISPLAYS = (Channel.KIOSK.value, Channel.TERMINAL.value, Channel.MONITOR.value)
STAFF_DISPLAYS = (Channel.TERMINAL.value, Channel.MONITOR.value)


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


def service_channel(service_id: int) -> str:
    return f"service:{service_id}"


class _Subscription:
    __slots__ = ("subscriber", "channels")

    def __init__(self, subscriber: Subscriber, channels: Set[str]):
        self.subscriber = subscriber
        self.channels = channels

    def wants(self, targets: Optional[Set[str]]) -> bool:
        if not self.channels or targets is None:
            return True
        return bool(self.channels & targets)


class RealtimeBroadcaster:
    """
    Fan-out of realtime events to subscribers.

    ``publish`` never raises: a subscriber whose send fails is logged and
    dropped.
    """

    def __init__(self):
        self._subscriptions: Dict[str, _Subscription] = {}
        self._lock = asyncio.Lock()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def subscribe(self, subscriber: Subscriber, channels: Optional[Iterable[str]] = None) -> str:
        """Register a subscriber; returns its subscription id"""
        subscription_id = generate_subscriber_id()
        async with self._lock:
            self._subscriptions[subscription_id] = _Subscription(subscriber, set(channels or ()))
        logger.info(f"Subscriber {subscription_id} connected", extra={"operation": "subscribe"})
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> None:
        async with self._lock:
            removed = self._subscriptions.pop(subscription_id, None)
        if removed is not None:
            logger.info(f"Subscriber {subscription_id} disconnected", extra={"operation": "unsubscribe"})

    async def join(self, subscription_id: str, channel: str) -> Set[str]:
        async with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return set()
            subscription.channels.add(channel)
            return set(subscription.channels)

    async def leave(self, subscription_id: str, channel: str) -> Set[str]:
        async with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return set()
            subscription.channels.discard(channel)
            return set(subscription.channels)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(
        self,
        event: RealtimeEvent,
        data: Dict[str, Any],
        channels: Optional[Iterable[str]] = None
    ) -> int:
        """
        Send an event to every subscriber listening on one of ``channels``
        (all subscribers when ``channels`` is None). Returns the number of
        successful deliveries.
        """
        targets = set(channels) if channels is not None else None
        message = {"event": event.value, "data": data}

        async with self._lock:
            recipients = [
                (sid, sub.subscriber)
                for sid, sub in self._subscriptions.items()
                if sub.wants(targets)
            ]

        delivered = 0
        failed: List[str] = []
        for subscription_id, subscriber in recipients:
            try:
                await subscriber.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber {subscription_id}: {e}")
                failed.append(subscription_id)

        if failed:
            async with self._lock:
                for subscription_id in failed:
                    self._subscriptions.pop(subscription_id, None)
        return delivered

    async def send_to(self, subscription_id: str, event: RealtimeEvent, data: Dict[str, Any]) -> bool:
        """Send an event to a single subscriber"""
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            return False
        try:
            await subscription.subscriber.send_json({"event": event.value, "data": data})
            return True
        except Exception as e:
            logger.warning(f"Dropping subscriber {subscription_id}: {e}")
            await self.unsubscribe(subscription_id)
            return False

    # =========================================================================
    # Lifecycle events
    # =========================================================================

    async def ticket_created(self, issued: IssuedTicket) -> None:
        await self.publish(
            RealtimeEvent.TICKET_CREATED,
            {"ticket": views.issued_ticket_view(issued)},
            ALL_DISPLAYS,
        )

    async def ticket_called(self, outcome: TransitionOutcome) -> None:
        counter_id = outcome.counter_id
        await self.publish(
            RealtimeEvent.TICKET_CALLED,
            {
                "ticket": views.transition_ticket_view(outcome),
                "counter": {"id": counter_id, "name": f"Counter {counter_id}", "number": counter_id},
                "agent": {"id": outcome.agent_id},
            },
            ALL_DISPLAYS,
        )

    async def ticket_completed(self, outcome: TransitionOutcome) -> None:
        await self.publish(
            RealtimeEvent.TICKET_COMPLETED,
            {
                "ticket": views.transition_ticket_view(outcome),
                "queue": views.snapshot_view(outcome.queue),
            },
            ALL_DISPLAYS,
        )

    async def ticket_recycled(self, outcome: TransitionOutcome) -> None:
        await self.publish(
            RealtimeEvent.TICKET_RECYCLED,
            {
                "ticket": views.transition_ticket_view(outcome),
                "position": outcome.requested_position,
            },
            STAFF_DISPLAYS,
        )

    async def ticket_transferred(self, outcome: TransferOutcome) -> None:
        ticket = views.transfer_ticket_view(outcome)
        await self.publish(
            RealtimeEvent.TICKET_TRANSFERRED,
            {
                "ticket": {
                    "id": ticket["id"],
                    "oldNumber": ticket["oldNumber"],
                    "newNumber": ticket["newNumber"],
                    "number": ticket["number"],
                    "fromServiceId": outcome.from_service_id,
                    "toServiceId": ticket["serviceId"],
                    "toServiceName": ticket["serviceName"],
                    "state": ticket["state"],
                    "transferredAt": ticket["transferredAt"],
                }
            },
            ALL_DISPLAYS,
        )

    async def queue_updated(self, snapshot: QueueSnapshot) -> None:
        """Publish a snapshot to the displays and to the service's own channel"""
        await self.publish(
            RealtimeEvent.QUEUE_UPDATED,
            {"serviceId": snapshot.service_id, "queue": views.snapshot_view(snapshot)},
            ALL_DISPLAYS + (service_channel(snapshot.service_id),),
        )

    async def system_alert(
        self,
        message: str,
        level: str = "info",
        targets: Iterable[str] = ALL_DISPLAYS
    ) -> None:
        await self.publish(
            RealtimeEvent.SYSTEM_ALERT,
            {"message": message, "level": level, "timestamp": format_iso(utc_now())},
            list(targets),
        )
