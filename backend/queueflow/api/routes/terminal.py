"""
Terminal Routes

Endpoints used by agent terminals:
- Call next / complete / recall / no-show / recycle / transfer
- Queue snapshot of a service
- Services assigned to an agent
"""

from fastapi import APIRouter, Depends, Path

from ..deps import get_correlation_id_dep, get_terminal_service
from ...services.terminal_service import TerminalService
from ... import views
from .schemas import (
    CallNextRequest, CompleteRequest, RecycleRequest, TicketActionRequest, TransferRequest
)

router = APIRouter(dependencies=[Depends(get_correlation_id_dep)])


# =============================================================================
# Lifecycle
# =============================================================================

@router.post("/call-next")
async def call_next(
    request: CallNextRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    """
    Call the next ticket to this counter.

    With ticketId, that exact waiting ticket is called. Otherwise the queue
    is picked from serviceId, the agent's assignments, the counter default
    or the first active service, in that order.
    """
    outcome = await service.call_next(
        counter_id=request.counter_id,
        agent_id=request.agent_id,
        service_id=request.service_id,
        ticket_id=request.ticket_id,
    )
    return views.transition_response(outcome)


@router.post("/complete")
async def complete(
    request: CompleteRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    """Finish serving a ticket"""
    outcome = await service.complete(
        request.ticket_id, request.counter_id, request.agent_id, notes=request.notes
    )
    return views.transition_response(outcome)


@router.post("/recall")
async def recall(
    request: TicketActionRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    outcome = await service.recall(request.ticket_id, request.counter_id, request.agent_id)
    return views.transition_response(outcome)


@router.post("/no-show")
async def no_show(
    request: TicketActionRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    outcome = await service.no_show(request.ticket_id, request.counter_id, request.agent_id)
    return views.transition_response(outcome)


@router.post("/recycle")
async def recycle(
    request: RecycleRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    """Send a called ticket back to the waiting pool"""
    outcome = await service.recycle(
        request.ticket_id, request.counter_id, request.agent_id, position=request.position
    )
    return views.transition_response(outcome)


@router.post("/transfer")
async def transfer(
    request: TransferRequest,
    service: TerminalService = Depends(get_terminal_service)
):
    """Move a called ticket to another service's queue"""
    outcome = await service.transfer(
        request.ticket_id, request.target_service_id, request.counter_id, request.agent_id
    )
    return views.transfer_response(outcome)


# =============================================================================
# Reads
# =============================================================================

@router.get("/queue/{service_id}")
async def get_queue(
    service_id: int = Path(..., gt=0),
    service: TerminalService = Depends(get_terminal_service)
):
    record, snapshot = await service.get_queue(service_id)
    return {
        "service": {"id": record.id, "name": record.name, "prefix": record.prefix},
        **views.snapshot_view(snapshot),
    }


@router.get("/agent/{agent_id}/services")
async def agent_services(
    agent_id: int = Path(..., gt=0),
    service: TerminalService = Depends(get_terminal_service)
):
    assignments = await service.agent_services(agent_id)
    return {"services": [views.agent_service_view(a) for a in assignments]}
