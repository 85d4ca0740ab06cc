"""Reset Scheduler - Daily queue reset driven by APScheduler

The reset time and on/off switch live in the settings table so that they
survive restarts and can be changed from the admin API.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Union

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..domain.errors import ValidationError
from ..repositories.settings_repo import SettingsRepository
from ..repositories.transaction import TransactionClient
from ..services.reset_service import ResetService
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, reset_correlation_id, set_correlation_id
from ..utils.time import parse_clock_time

logger = get_logger(__name__)

RESET_TIME_KEY = "config.reset_time"
RESET_ENABLED_KEY = "config.daily_reset"
RESET_JOB_ID = "daily_queue_reset"


def normalize_flag(value: Union[bool, str, int, None]) -> bool:
    """Accept booleans and their common string spellings"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class ResetScheduler:
    """
    Runs ``ResetService.perform_system_reset`` once a day at the configured
    time (server local time).
    """

    def __init__(
        self,
        client: TransactionClient,
        reset_service: ResetService,
        default_reset_time: str = "00:00"
    ):
        self.client = client
        self.reset_service = reset_service
        self.default_reset_time = default_reset_time
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.enabled = False
        self.reset_time = default_reset_time
        self._trigger: Optional[CronTrigger] = None

    # =========================================================================
    # Start / stop
    # =========================================================================

    def start(self) -> None:
        """Start the scheduler (requires a running event loop)"""
        if self.is_running:
            logger.warning("Reset scheduler already running")
            return
        self.scheduler = AsyncIOScheduler()
        self.scheduler.start()
        logger.info("Reset scheduler started")

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
            logger.info("Reset scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    # =========================================================================
    # Configuration
    # =========================================================================

    async def load_configuration(self) -> Dict[str, Any]:
        """Read reset time and switch from the settings table"""
        async with self.client.transaction() as tx:
            values = await SettingsRepository(tx).get_many([RESET_TIME_KEY, RESET_ENABLED_KEY])
        return {
            "reset_time": values[RESET_TIME_KEY] or self.default_reset_time,
            "enabled": values[RESET_ENABLED_KEY] == "true",
        }

    async def synchronize(self) -> None:
        """Reload the persisted configuration and reschedule the job"""
        try:
            config = await self.load_configuration()
            await self.reset_service.load_last_reset()
        except Exception as e:
            logger.error(f"Failed to synchronise reset scheduler: {e}")
            return
        self._apply(config["reset_time"], config["enabled"])
        logger.info(f"Queue reset scheduler synchronised: enabled={self.enabled}, time={self.reset_time}")

    def _apply(self, reset_time: str, enabled: bool) -> None:
        parsed = parse_clock_time(reset_time)
        if parsed is None:
            logger.warning(f"Invalid stored reset time {reset_time!r}, using 00:00")
            parsed = (0, 0)
        hour, minute = parsed

        self.reset_time = reset_time
        self.enabled = enabled
        self._trigger = CronTrigger(hour=hour, minute=minute) if enabled else None

        if self.scheduler is None:
            return
        if self.scheduler.get_job(RESET_JOB_ID) is not None:
            self.scheduler.remove_job(RESET_JOB_ID)
        if self._trigger is not None:
            self.scheduler.add_job(
                self._run_scheduled_reset,
                trigger=self._trigger,
                id=RESET_JOB_ID,
                name="Daily queue reset",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=3600,
            )

    async def update_configuration(self, reset_time: str, daily_reset: Union[bool, str, int, None]) -> None:
        """Validate, persist and apply a new reset configuration"""
        if not reset_time or parse_clock_time(reset_time) is None:
            raise ValidationError("resetTime must be in HH:MM 24h format")
        enabled = normalize_flag(daily_reset)

        async with self.client.transaction() as tx:
            settings_repo = SettingsRepository(tx)
            await settings_repo.upsert(RESET_TIME_KEY, reset_time.strip())
            await settings_repo.upsert(RESET_ENABLED_KEY, "true" if enabled else "false")

        await self.synchronize()

    # =========================================================================
    # Status / job
    # =========================================================================

    def next_run_at(self) -> Optional[datetime]:
        if self._trigger is None:
            return None
        now = datetime.now(self._trigger.timezone)
        return self._trigger.get_next_fire_time(None, now)

    def status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "reset_time": self.reset_time,
            "next_run_at": self.next_run_at(),
            **self.reset_service.status(),
        }

    async def _run_scheduled_reset(self) -> None:
        token = set_correlation_id(generate_correlation_id())
        try:
            await self.reset_service.perform_system_reset(reason="scheduled", initiated_by="scheduler")
        except Exception as e:
            logger.error(f"Scheduled reset failed: {e}", exc_info=True)
        finally:
            reset_correlation_id(token)
