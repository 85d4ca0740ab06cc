"""
Reset Service - System-wide queue reset and queue presets

Both operations reuse the lifecycle engine's discipline: one transaction
for the store mutation, audit and broadcast after commit.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..domain.enums import Channel, EntityType, EventType, TicketState
from ..domain.errors import ServiceNotFoundError, ValidationError
from ..domain.models import PresetResult, QueuedTicket, ResetSummary, ServiceRef
from ..engine.audit_writer import AuditWriter
from ..engine.snapshot import QueueSnapshotBuilder
from ..realtime.broadcaster import RealtimeBroadcaster
from ..repositories.counter_repo import CounterRepository
from ..repositories.service_repo import ServiceRepository
from ..repositories.settings_repo import SettingsRepository
from ..repositories.tables import TicketRecord
from ..repositories.ticket_repo import TicketRepository
from ..repositories.transaction import TransactionClient
from ..utils.logger import get_logger
from ..utils.time import format_iso, parse_iso, utc_now
from .kiosk_service import format_ticket_number

logger = get_logger(__name__)

LAST_RESET_KEY = "system.last_reset_at"
ALERT_TARGETS = (Channel.TERMINAL.value, Channel.MONITOR.value, Channel.KIOSK.value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ResetService:
    """
    Owns the reset guard and the last-reset bookkeeping.

    One instance per application; the guard is process-local.
    """

    def __init__(
        self,
        client: TransactionClient,
        audit: AuditWriter,
        broadcaster: RealtimeBroadcaster,
        snapshots: Optional[QueueSnapshotBuilder] = None,
        preset_max_count: int = 500,
        number_width: int = 3
    ):
        self.client = client
        self.audit = audit
        self.broadcaster = broadcaster
        self.snapshots = snapshots or QueueSnapshotBuilder()
        self.preset_max_count = preset_max_count
        self.number_width = number_width

        self.in_progress = False
        self.last_reset_at: Optional[datetime] = None
        self.last_reset_reason: Optional[str] = None
        self.last_reset_summary: Optional[ResetSummary] = None

    # =========================================================================
    # System reset
    # =========================================================================

    async def perform_system_reset(
        self,
        reason: str = "manual",
        initiated_by: str = "admin",
        silent: bool = False
    ) -> ResetSummary:
        """
        Clear every queue and restart numbering.

        A reset requested while another one runs is skipped, not queued.
        """
        if self.in_progress:
            logger.warning("System reset skipped: already in progress", extra={"operation": "system_reset"})
            return ResetSummary(skipped=True, message="Reset already in progress")

        self.in_progress = True
        try:
            async with self.client.transaction() as tx:
                tickets = TicketRepository(tx)
                services = ServiceRepository(tx)

                deleted = await tickets.count_all()
                await CounterRepository(tx).release_all()
                await tickets.delete_all()
                await tx.reset_sequence(TicketRecord.__tablename__)
                await services.reset_numbering()
                active = await services.list_active()

                reset_at = utc_now()
                await SettingsRepository(tx).upsert(LAST_RESET_KEY, format_iso(reset_at))

            summary = ResetSummary(
                deleted_tickets=deleted,
                services=[ServiceRef(id=s.id, name=s.name, prefix=s.prefix) for s in active],
                reset_at=reset_at,
                reason=reason,
            )
            self.last_reset_at = reset_at
            self.last_reset_reason = reason
            self.last_reset_summary = summary
            logger.info(
                f"System reset completed ({reason}): {deleted} tickets removed",
                extra={"operation": "system_reset"}
            )
        except Exception as e:
            logger.error(f"System reset failed: {e}", exc_info=True, extra={"operation": "system_reset"})
            raise
        finally:
            self.in_progress = False

        await self._after_reset(summary, initiated_by, silent)
        return summary

    async def _after_reset(self, summary: ResetSummary, initiated_by: str, silent: bool) -> None:
        try:
            await self.audit.write_event(
                EventType.SYSTEM_RESET,
                EntityType.SYSTEM,
                0,
                {
                    "reason": summary.reason,
                    "initiatedBy": initiated_by,
                    "deletedTickets": summary.deleted_tickets,
                    "serviceIds": [s.id for s in summary.services],
                    "timestamp": format_iso(summary.reset_at),
                },
            )
        except Exception as e:
            logger.error(f"Failed to log system reset event: {e}")

        try:
            for service in summary.services:
                await self.broadcaster.queue_updated(self.snapshots.empty(service.id))
            if not silent:
                await self.broadcaster.system_alert(
                    f"Queues reset ({summary.reason}).",
                    level="warning",
                    targets=ALERT_TARGETS,
                )
        except Exception as e:
            logger.error(f"Failed to broadcast system reset: {e}")

    # =========================================================================
    # Queue preset
    # =========================================================================

    def _validate_preset(self, service_id: Any, start_number: Any, count: Any) -> None:
        if not _is_int(service_id) or service_id <= 0:
            raise ValidationError("serviceId must be a positive integer")
        if not _is_int(start_number) or start_number < 0:
            raise ValidationError("startNumber must be zero or positive integer")
        if not _is_int(count) or count <= 0:
            raise ValidationError("count must be a positive integer")
        if count > self.preset_max_count:
            raise ValidationError(f"count may not exceed {self.preset_max_count} tickets per request")

    async def preset_service_queue(
        self,
        service_id: int,
        start_number: int,
        count: int,
        priority: int = 0,
        initiated_by: str = "admin"
    ) -> PresetResult:
        """
        Pre-populate a service's queue with ``count`` waiting tickets
        numbered start_number + 1 .. start_number + count.

        Numbers already used in the service are skipped and reported.
        """
        self._validate_preset(service_id, start_number, count)

        async with self.client.transaction() as tx:
            service = await ServiceRepository(tx).get_active(service_id, for_update=True)
            if service is None:
                raise ServiceNotFoundError("Service not found or inactive")

            tickets = TicketRepository(tx)
            candidates = [
                format_ticket_number(service.prefix, start_number + i, self.number_width)
                for i in range(1, count + 1)
            ]
            taken = await tickets.numbers_in_service(service_id, candidates)

            base_time = utc_now()
            position = await tickets.count_waiting(service_id)
            inserted: List[TicketRecord] = []
            skipped: List[str] = []
            for offset, number in enumerate(candidates):
                if number in taken:
                    skipped.append(number)
                    continue
                position += 1
                inserted.append(await tickets.insert(TicketRecord(
                    ticket_number=number,
                    service_id=service_id,
                    state=TicketState.WAITING.value,
                    priority=priority,
                    # 1 ms apart so FIFO order follows the numbering
                    created_at=base_time + timedelta(milliseconds=offset),
                    estimated_wait=service.estimated_service_time * position,
                    recall_count=0,
                )))

            if start_number + count > service.range_end:
                logger.warning(
                    f"Preset for service {service_id} runs past range end {service.range_end}; "
                    f"kiosk intake will report the range as exhausted",
                    extra={"service_id": service_id, "operation": "preset_queue"}
                )
            final_number = max(service.current_number, start_number + count)
            service.current_number = final_number

            result = PresetResult(
                inserted_tickets=[QueuedTicket.model_validate(r) for r in inserted],
                skipped_tickets=skipped,
                service=ServiceRef(id=service.id, name=service.name, prefix=service.prefix),
                final_number=final_number,
                queue=await self.snapshots.build(tx, service_id),
            )

        logger.info(
            f"Preset {len(result.inserted_tickets)} tickets for service {service_id}",
            extra={"service_id": service_id, "operation": "preset_queue"}
        )

        try:
            await self.broadcaster.queue_updated(result.queue)
        except Exception as e:
            logger.error(f"Failed to broadcast queue preset: {e}", extra={"service_id": service_id})

        try:
            await self.audit.write_event(
                EventType.QUEUE_PRESET,
                EntityType.SERVICE,
                service_id,
                {
                    "inserted": len(result.inserted_tickets),
                    "skipped": len(result.skipped_tickets),
                    "finalNumber": result.final_number,
                    "initiatedBy": initiated_by,
                },
            )
        except Exception as e:
            logger.error(f"Failed to log queue preset event: {e}", extra={"service_id": service_id})

        return result

    # =========================================================================
    # Status
    # =========================================================================

    async def load_last_reset(self) -> Optional[datetime]:
        """Restore the last reset time persisted by a previous process"""
        if self.last_reset_at is not None:
            return self.last_reset_at
        async with self.client.transaction() as tx:
            value = await SettingsRepository(tx).get(LAST_RESET_KEY)
        if value:
            try:
                self.last_reset_at = parse_iso(value)
            except (ValueError, OverflowError):
                logger.warning(f"Ignoring malformed {LAST_RESET_KEY} value: {value!r}")
        return self.last_reset_at

    def status(self) -> Dict[str, Any]:
        return {
            "last_reset_at": self.last_reset_at,
            "last_reset_reason": self.last_reset_reason,
            "last_reset_summary": self.last_reset_summary,
            "in_progress": self.in_progress,
        }
