"""Service Container - Builds the per-application object graph"""
from dataclasses import dataclass
from typing import Optional

from .config.settings import Settings, get_settings
from .engine.audit_writer import AuditWriter
from .engine.lifecycle import TicketLifecycleEngine
from .engine.snapshot import QueueSnapshotBuilder
from .realtime.broadcaster import RealtimeBroadcaster
from .repositories.database import Database
from .repositories.transaction import TransactionClient
from .scheduler.reset_scheduler import ResetScheduler
from .services.kiosk_service import KioskService
from .services.reset_service import ResetService
from .services.terminal_service import TerminalService


@dataclass
class ServiceContainer:
    """Everything a running application instance owns"""
    config: Settings
    database: Database
    client: TransactionClient
    broadcaster: RealtimeBroadcaster
    audit: AuditWriter
    engine: TicketLifecycleEngine
    terminal: TerminalService
    kiosk: KioskService
    reset: ResetService
    scheduler: ResetScheduler


def build_container(config: Optional[Settings] = None, database: Optional[Database] = None) -> ServiceContainer:
    config = config or get_settings()
    database = database or Database(config)
    client = TransactionClient(database)
    snapshots = QueueSnapshotBuilder()
    broadcaster = RealtimeBroadcaster()
    audit = AuditWriter(client)
    engine = TicketLifecycleEngine(client, snapshots=snapshots)
    reset = ResetService(
        client,
        audit,
        broadcaster,
        snapshots=snapshots,
        preset_max_count=config.preset_max_count,
        number_width=config.ticket_number_width,
    )
    return ServiceContainer(
        config=config,
        database=database,
        client=client,
        broadcaster=broadcaster,
        audit=audit,
        engine=engine,
        terminal=TerminalService(
            engine, audit, broadcaster, default_recycle_position=config.default_recycle_position
        ),
        kiosk=KioskService(
            client, audit, broadcaster, snapshots=snapshots, number_width=config.ticket_number_width
        ),
        reset=reset,
        scheduler=ResetScheduler(client, reset, default_reset_time=config.default_reset_time),
    )
