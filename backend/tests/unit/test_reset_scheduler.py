"""Daily reset scheduler"""
import pytest

from queueflow.domain.errors import ValidationError
from queueflow.scheduler.reset_scheduler import RESET_JOB_ID, normalize_flag


@pytest.mark.parametrize("value,expected", [
    (True, True), (False, False), ("true", True), (" TRUE ", True), ("false", False),
    ("yes", False), (1, True), (0, False), (None, False),
])
def test_normalize_flag(value, expected):
    assert normalize_flag(value) is expected


async def test_defaults_without_stored_configuration(container):
    config = await container.scheduler.load_configuration()

    assert config == {"reset_time": "00:00", "enabled": False}


async def test_update_configuration_persists(container):
    scheduler = container.scheduler

    await scheduler.update_configuration("23:45", "true")

    assert await scheduler.load_configuration() == {"reset_time": "23:45", "enabled": True}
    status = scheduler.status()
    assert status["enabled"] is True
    assert status["reset_time"] == "23:45"
    next_run = status["next_run_at"]
    assert next_run is not None
    assert (next_run.hour, next_run.minute) == (23, 45)


@pytest.mark.parametrize("reset_time", ["24:00", "7pm", "", "12:60"])
async def test_update_configuration_rejects_bad_time(container, reset_time):
    with pytest.raises(ValidationError) as exc:
        await container.scheduler.update_configuration(reset_time, True)
    assert exc.value.message == "resetTime must be in HH:MM 24h format"


async def test_disabled_schedule_has_no_next_run(container):
    await container.scheduler.update_configuration("06:00", False)

    assert container.scheduler.status()["next_run_at"] is None


async def test_job_follows_configuration(container):
    scheduler = container.scheduler
    scheduler.start()
    try:
        await scheduler.update_configuration("01:15", True)
        job = scheduler.scheduler.get_job(RESET_JOB_ID)
        assert job is not None
        assert job.next_run_time is not None

        await scheduler.update_configuration("01:15", False)
        assert scheduler.scheduler.get_job(RESET_JOB_ID) is None
    finally:
        scheduler.stop()
    assert scheduler.is_running is False


async def test_scheduled_run_resets_queues(container, kiosk):
    await kiosk.create_ticket(1)

    await container.scheduler._run_scheduled_reset()

    status = container.scheduler.status()
    assert status["last_reset_reason"] == "scheduled"
    assert status["last_reset_summary"].deleted_tickets == 1
