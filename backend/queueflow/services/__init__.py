"""Service modules - Business logic layer"""
from .terminal_service import TerminalService
from .kiosk_service import KioskService
from .reset_service import ResetService

__all__ = [
    "TerminalService",
    "KioskService",
    "ResetService",
]
