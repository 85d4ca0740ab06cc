"""
Seed Data Script - Creates sample services, counters and agents
Run: python -m scripts.seed_data [--reset]
"""
import argparse
import asyncio
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from queueflow.domain.enums import CounterState
from queueflow.repositories.database import Database
from queueflow.repositories.tables import (
    AgentRecord, AgentServiceRecord, CounterRecord, ServiceRecord
)
from queueflow.repositories.transaction import TransactionClient


SERVICES = [
    {"id": 1, "name": "General Enquiries", "prefix": "A",
     "description": "Questions, forms and information"},
    {"id": 2, "name": "Payments", "prefix": "B", "estimated_service_time": 240,
     "description": "Bill payments and receipts"},
    {"id": 3, "name": "New Accounts", "prefix": "C", "estimated_service_time": 600,
     "description": "Opening and closing accounts"},
]

COUNTERS = [
    {"id": 1, "number": 1, "name": "Counter 1", "default_service_id": 1},
    {"id": 2, "number": 2, "name": "Counter 2", "default_service_id": 2},
    {"id": 3, "number": 3, "name": "Counter 3", "default_service_id": 3},
]

AGENTS = [
    {"id": 1, "name": "Alex Morgan", "username": "amorgan"},
    {"id": 2, "name": "Sam Rivera", "username": "srivera"},
    {"id": 3, "name": "Jordan Lee", "username": "jlee"},
]

# (agent_id, service_id, priority) - lower priority is preferred
ASSIGNMENTS = [
    (1, 1, 0),
    (1, 2, 1),
    (2, 2, 0),
    (3, 3, 0),
    (3, 1, 1),
]


async def create_sample_data(client: TransactionClient, default_service_time: int) -> bool:
    """Insert the sample rows; returns False when data already exists"""
    async with client.transaction() as tx:
        if await tx.scalar(select(func.count()).select_from(ServiceRecord)):
            print("Database already has data. Skipping seed.")
            return False

        for service in SERVICES:
            fields = {"estimated_service_time": default_service_time, **service}
            await tx.add(ServiceRecord(range_start=1, range_end=999, current_number=0, is_active=True, **fields))
        for agent in AGENTS:
            await tx.add(AgentRecord(is_active=True, **agent))
        for counter in COUNTERS:
            await tx.add(CounterRecord(state=CounterState.AVAILABLE.value, **counter))
        for agent_id, service_id, priority in ASSIGNMENTS:
            await tx.add(AgentServiceRecord(agent_id=agent_id, service_id=service_id, priority=priority))

    print(f"Created {len(SERVICES)} services, {len(COUNTERS)} counters, {len(AGENTS)} agents")
    return True


async def run(reset: bool) -> None:
    database = Database()
    try:
        if reset:
            await database.drop_schema()
        await database.create_schema()
        if await create_sample_data(TransactionClient(database), database.config.default_service_time_seconds):
            print("\n[OK] Seed data created successfully!")
    finally:
        await database.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed the QueueFlow database")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()

    print("=== Seeding database ===")
    print("-" * 40)
    asyncio.run(run(args.reset))
    print("-" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
