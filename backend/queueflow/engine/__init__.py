"""Lifecycle Engine - The brain of the system"""
from .lifecycle import TicketLifecycleEngine
from .snapshot import QueueSnapshotBuilder
from .service_resolver import ServiceResolver
from .audit_writer import AuditWriter

__all__ = [
    "TicketLifecycleEngine",
    "QueueSnapshotBuilder",
    "ServiceResolver",
    "AuditWriter",
]
