"""Repository modules - Data access layer"""
from .database import Database
from .transaction import Transaction, TransactionClient
from .ticket_repo import TicketRepository, WAITING_ORDER
from .counter_repo import CounterRepository
from .service_repo import ServiceRepository
from .settings_repo import SettingsRepository
from .audit_repo import AuditRepository

__all__ = [
    "Database",
    "Transaction",
    "TransactionClient",
    "TicketRepository",
    "WAITING_ORDER",
    "CounterRepository",
    "ServiceRepository",
    "SettingsRepository",
    "AuditRepository",
]
