"""Admin API Routes - System reset, queue presets and reset scheduling"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..deps import get_correlation_id_dep, get_reset_scheduler, get_reset_service
from ...scheduler.reset_scheduler import ResetScheduler
from ...services.reset_service import ResetService
from ...utils.logger import get_logger
from ... import views
from .schemas import PresetQueueRequest, ResetConfigRequest, SystemResetRequest

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(get_correlation_id_dep)])


# ============================================================================
# System reset
# ============================================================================

@router.post("/system/reset")
async def system_reset(
    request: Optional[SystemResetRequest] = Body(None),
    service: ResetService = Depends(get_reset_service)
):
    """
    Clear all queues and restart ticket numbering.

    Answers {skipped: true} when another reset is already running.
    """
    request = request or SystemResetRequest()
    logger.info(f"Manual system reset requested ({request.reason})", extra={"operation": "system_reset"})
    summary = await service.perform_system_reset(
        reason=request.reason, initiated_by="admin", silent=request.silent
    )
    return views.reset_summary_view(summary)


@router.post("/system/preset-queue")
async def preset_queue(
    request: PresetQueueRequest,
    service: ResetService = Depends(get_reset_service)
):
    """Pre-populate a service queue with waiting tickets"""
    result = await service.preset_service_queue(
        service_id=request.service_id,
        start_number=request.start_number,
        count=request.count,
        priority=request.priority,
        initiated_by="admin",
    )
    return views.preset_result_view(result)


# ============================================================================
# Reset scheduling
# ============================================================================

@router.get("/system/reset-status")
async def reset_status(scheduler: ResetScheduler = Depends(get_reset_scheduler)):
    return views.reset_status_view(scheduler.status())


@router.put("/system/reset-config")
async def update_reset_config(
    request: ResetConfigRequest,
    scheduler: ResetScheduler = Depends(get_reset_scheduler)
):
    """Change the daily reset time and switch"""
    await scheduler.update_configuration(request.reset_time, request.daily_reset)
    return {"success": True, **views.reset_status_view(scheduler.status())}
