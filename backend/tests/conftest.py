"""
Pytest Configuration and Fixtures

Each test gets its own SQLite file under tmp_path, seeded with:

    services  1 "General Enquiries" (A, range 1-999, 300 s)
              2 "Payments"          (B, range 1-999, 240 s)
              3 "Archived"          (C, inactive)
    counters  3 (default service 1), 4 (default service 2)
    agents    7 -> service 1
              8 -> no assignments
              9 -> service 2 (preferred), service 1
"""

from typing import Any, Dict, List

import httpx
import pytest

from queueflow.config.settings import Settings
from queueflow.container import ServiceContainer, build_container
from queueflow.domain.enums import CounterState
from queueflow.main import create_app
from queueflow.repositories.tables import (
    AgentRecord, AgentServiceRecord, CounterRecord, ServiceRecord
)
from queueflow.repositories.transaction import TransactionClient


class RecordingSubscriber:
    """Realtime subscriber that keeps every message it is sent"""

    def __init__(self, fail: bool = False):
        self.messages: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(data)

    def events(self) -> List[str]:
        return [m["event"] for m in self.messages]

    def of(self, event: str) -> List[Dict[str, Any]]:
        return [m["data"] for m in self.messages if m["event"] == event]


async def seed(client: TransactionClient) -> None:
    async with client.transaction() as tx:
        await tx.add(ServiceRecord(id=1, name="General Enquiries", prefix="A", range_start=1, range_end=999,
                                   current_number=0, estimated_service_time=300, is_active=True))
        await tx.add(ServiceRecord(id=2, name="Payments", prefix="B", range_start=1, range_end=999,
                                   current_number=0, estimated_service_time=240, is_active=True))
        await tx.add(ServiceRecord(id=3, name="Archived", prefix="C", range_start=1, range_end=999,
                                   current_number=0, estimated_service_time=300, is_active=False))
        for agent_id, name in ((7, "Alex Morgan"), (8, "Sam Rivera"), (9, "Jordan Lee")):
            await tx.add(AgentRecord(id=agent_id, name=name, username=name.split()[0].lower(), is_active=True))
        await tx.add(CounterRecord(id=3, number=3, name="Counter 3", state=CounterState.AVAILABLE.value,
                                   default_service_id=1))
        await tx.add(CounterRecord(id=4, number=4, name=None, state=CounterState.AVAILABLE.value,
                                   default_service_id=2))
        await tx.add(AgentServiceRecord(agent_id=7, service_id=1, priority=0))
        await tx.add(AgentServiceRecord(agent_id=9, service_id=2, priority=0))
        await tx.add(AgentServiceRecord(agent_id=9, service_id=1, priority=1))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'queueflow.db'}",
        logs_path=str(tmp_path / "logs"),
        scheduler_enabled=False,
        preset_max_count=50,
    )


@pytest.fixture
async def container(settings) -> ServiceContainer:
    container = build_container(settings)
    await container.database.create_schema()
    await seed(container.client)
    yield container
    container.scheduler.stop()
    await container.database.dispose()


@pytest.fixture
async def subscriber(container) -> RecordingSubscriber:
    """Subscriber on every channel"""
    recorder = RecordingSubscriber()
    await container.broadcaster.subscribe(recorder)
    return recorder


@pytest.fixture
def engine(container):
    return container.engine


@pytest.fixture
def kiosk(container):
    return container.kiosk


@pytest.fixture
async def api(container) -> httpx.AsyncClient:
    """HTTP client against the app; the lifespan is skipped, the schema is already in place"""
    app = create_app(container=container)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
