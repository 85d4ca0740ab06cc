"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Header, Request
from starlette.requests import HTTPConnection

from ..container import ServiceContainer
from ..realtime.broadcaster import RealtimeBroadcaster
from ..scheduler.reset_scheduler import ResetScheduler
from ..services.kiosk_service import KioskService
from ..services.reset_service import ResetService
from ..services.terminal_service import TerminalService
from ..utils.logger import get_correlation_id, set_correlation_id
from ..utils.idgen import generate_correlation_id


def get_container(connection: HTTPConnection) -> ServiceContainer:
    """Container built by the app factory (works for HTTP and WebSocket)"""
    return connection.app.state.container


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Correlation ID of the current request.

    CorrelationIdMiddleware normally binds it before routing, so that id is
    returned as is. Only a request that bypassed the middleware gets the
    header value or a fresh id.
    """
    current = get_correlation_id()
    if current:
        return current
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def get_terminal_service(request: Request) -> TerminalService:
    return get_container(request).terminal


def get_kiosk_service(request: Request) -> KioskService:
    return get_container(request).kiosk


def get_reset_service(request: Request) -> ResetService:
    return get_container(request).reset


def get_reset_scheduler(request: Request) -> ResetScheduler:
    return get_container(request).scheduler


def get_broadcaster(connection: HTTPConnection) -> RealtimeBroadcaster:
    return get_container(connection).broadcaster
