"""Counter Routes"""

from fastapi import APIRouter, Depends

from ..deps import get_terminal_service
from ...services.terminal_service import TerminalService
from ... import views

router = APIRouter()


@router.get("")
async def list_counters(service: TerminalService = Depends(get_terminal_service)):
    """All counters with their current state"""
    return views.counters_view(await service.list_counters())
