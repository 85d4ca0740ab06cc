"""
Kiosk Routes

Customer-facing ticket intake.
"""

from fastapi import APIRouter, Depends, status

from ..deps import get_correlation_id_dep, get_kiosk_service
from ...services.kiosk_service import KioskService
from ... import views
from .schemas import CreateTicketRequest

router = APIRouter(dependencies=[Depends(get_correlation_id_dep)])


@router.get("/services")
async def list_services(service: KioskService = Depends(get_kiosk_service)):
    """Active services with live queue counts"""
    overviews = await service.list_services()
    return {"services": [views.service_overview_view(o) for o in overviews]}


@router.post("/tickets", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    service: KioskService = Depends(get_kiosk_service)
):
    """Issue the next ticket of a service"""
    issued = await service.create_ticket(
        service_id=request.service_id,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        customer_email=str(request.customer_email) if request.customer_email else None,
        priority=request.priority,
    )
    return {"success": True, "ticket": views.issued_ticket_view(issued)}
