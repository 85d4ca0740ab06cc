"""API Routes module"""
from fastapi import APIRouter

from .terminal import router as terminal_router
from .kiosk import router as kiosk_router
from .admin import router as admin_router
from .counters import router as counters_router
from .realtime import router as realtime_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(terminal_router, prefix="/terminal", tags=["Terminal"])
api_router.include_router(kiosk_router, prefix="/kiosk", tags=["Kiosk"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
api_router.include_router(counters_router, prefix="/counters", tags=["Counters"])
api_router.include_router(realtime_router, tags=["Realtime"])

__all__ = ["api_router"]
