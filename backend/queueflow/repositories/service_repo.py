"""Service Repository - Data access for services, agents and assignments"""
from typing import List, Optional

from sqlalchemy import select, update

from .tables import AgentRecord, AgentServiceRecord, ServiceRecord
from .transaction import Transaction
from ..domain.models import AgentServiceAssignment


class ServiceRepository:
    """Repository for service and agent lookups, bound to a transaction"""

    def __init__(self, tx: Transaction):
        self.tx = tx

    # =========================================================================
    # Services
    # =========================================================================

    async def get(self, service_id: int, for_update: bool = False) -> Optional[ServiceRecord]:
        return await self.tx.get(ServiceRecord, service_id, for_update=for_update)

    async def get_active(self, service_id: int, for_update: bool = False) -> Optional[ServiceRecord]:
        """Service by ID if it is active"""
        service = await self.get(service_id, for_update=for_update)
        if service is None or not service.is_active:
            return None
        return service

    async def first_active(self) -> Optional[ServiceRecord]:
        stmt = select(ServiceRecord).where(ServiceRecord.is_active.is_(True)).order_by(ServiceRecord.id).limit(1)
        return await self.tx.first(stmt)

    async def list_active(self) -> List[ServiceRecord]:
        stmt = select(ServiceRecord).where(ServiceRecord.is_active.is_(True)).order_by(ServiceRecord.id)
        return await self.tx.all(stmt)

    async def reset_numbering(self) -> int:
        """Set every service's current_number back to 0"""
        return await self.tx.execute(update(ServiceRecord).values(current_number=0))

    # =========================================================================
    # Agents
    # =========================================================================

    async def get_agent(self, agent_id: int) -> Optional[AgentRecord]:
        return await self.tx.get(AgentRecord, agent_id)

    async def assignments_for_agent(self, agent_id: int) -> List[AgentServiceAssignment]:
        """Services the agent may serve, preferred first"""
        stmt = (
            select(AgentServiceRecord, ServiceRecord)
            .join(ServiceRecord, ServiceRecord.id == AgentServiceRecord.service_id)
            .where(AgentServiceRecord.agent_id == agent_id)
            .order_by(AgentServiceRecord.priority, AgentServiceRecord.service_id)
        )
        return [
            AgentServiceAssignment(
                service_id=service.id,
                name=service.name,
                prefix=service.prefix,
                description=service.description,
                priority=link.priority,
            )
            for link, service in await self.tx.rows(stmt)
        ]
