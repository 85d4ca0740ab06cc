"""Kiosk Service - Customer ticket intake"""
from typing import List, Optional

from ..domain.enums import EntityType, EventType, TicketState
from ..domain.errors import TicketRangeExhaustedError, ValidationError
from ..domain.models import IssuedTicket, Service, ServiceOverview, Ticket
from ..engine.audit_writer import AuditWriter
from ..engine.snapshot import QueueSnapshotBuilder
from ..realtime.broadcaster import RealtimeBroadcaster
from ..repositories.service_repo import ServiceRepository
from ..repositories.tables import TicketRecord
from ..repositories.ticket_repo import TicketRepository
from ..repositories.transaction import TransactionClient
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


def format_ticket_number(prefix: str, number: int, width: int = 3) -> str:
    """Service prefix followed by the zero-padded sequence, e.g. A007"""
    return f"{prefix}{str(number).zfill(width)}"


class KioskService:
    """Issues tickets and reports live service load"""

    def __init__(
        self,
        client: TransactionClient,
        audit: AuditWriter,
        broadcaster: RealtimeBroadcaster,
        snapshots: Optional[QueueSnapshotBuilder] = None,
        number_width: int = 3
    ):
        self.client = client
        self.audit = audit
        self.broadcaster = broadcaster
        self.snapshots = snapshots or QueueSnapshotBuilder()
        self.number_width = number_width

    async def create_ticket(
        self,
        service_id: int,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        customer_email: Optional[str] = None,
        priority: int = 0
    ) -> IssuedTicket:
        """
        Issue the next ticket of a service.

        The sequence advances from the service's current_number and never
        goes below range_start; running past range_end is a conflict.
        """
        async with self.client.transaction() as tx:
            service = await ServiceRepository(tx).get_active(service_id, for_update=True)
            if service is None:
                raise ValidationError("Invalid or inactive service")

            next_number = max(service.current_number + 1, service.range_start)
            if next_number > service.range_end:
                raise TicketRangeExhaustedError(
                    "Ticket number range exhausted for service",
                    details={"service_id": service_id, "range_end": service.range_end}
                )
            service.current_number = next_number

            tickets = TicketRepository(tx)
            queue_position = await tickets.count_waiting(service_id) + 1
            record = await tickets.insert(TicketRecord(
                ticket_number=format_ticket_number(service.prefix, next_number, self.number_width),
                service_id=service_id,
                state=TicketState.WAITING.value,
                priority=priority,
                created_at=utc_now(),
                estimated_wait=service.estimated_service_time * queue_position,
                customer_name=customer_name,
                customer_phone=customer_phone,
                customer_email=customer_email,
                recall_count=0,
            ))

            issued = IssuedTicket(
                ticket=Ticket.model_validate(record),
                service_name=service.name,
                queue_position=queue_position,
                queue=await self.snapshots.build(tx, service_id),
            )

        ticket = issued.ticket
        try:
            await self.audit.write_event(
                EventType.TICKET_CREATED,
                EntityType.TICKET,
                ticket.id,
                {
                    "ticketNumber": ticket.ticket_number,
                    "serviceId": ticket.service_id,
                    "serviceName": issued.service_name,
                    "customerName": ticket.customer_name or "Anonymous",
                },
            )
        except Exception as e:
            logger.error(f"Event logging failed for ticket creation: {e}", extra={"ticket_id": ticket.id})

        try:
            await self.broadcaster.ticket_created(issued)
            await self.broadcaster.queue_updated(issued.queue)
        except Exception as e:
            logger.error(f"Broadcast failed for ticket creation: {e}", extra={"ticket_id": ticket.id})

        return issued

    async def list_services(self) -> List[ServiceOverview]:
        """Active services with waiting/serving counts"""
        async with self.client.transaction() as tx:
            tickets = TicketRepository(tx)
            services = await ServiceRepository(tx).list_active()
            now_serving = await tickets.lowest_called_numbers()
            overviews = []
            for record in services:
                overviews.append(ServiceOverview(
                    service=Service.model_validate(record),
                    waiting=await tickets.count_waiting(record.id),
                    serving=await tickets.count_serving(record.id),
                    current_serving=now_serving.get(record.id),
                ))
            return overviews
