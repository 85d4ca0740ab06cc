"""Service Resolver - Decide which queue call-next draws from"""
from typing import List, Optional

from ..domain.errors import AuthorizationError, ServiceNotFoundError, ServiceResolutionError
from ..domain.models import AgentServiceAssignment
from ..repositories.service_repo import ServiceRepository
from ..repositories.tables import CounterRecord, ServiceRecord
from ..repositories.transaction import Transaction
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ServiceResolver:
    """
    Resolve the service for a call-next without an explicit ticket.

    Precedence:
    1. the requested service (must be active; must be among the agent's
       assignments when the agent has any)
    2. the agent's preferred assignment, if that service is active
    3. with no assignments, the counter's default service if active
    4. with no assignments, the first active service
    """

    async def resolve(
        self,
        tx: Transaction,
        agent_id: int,
        counter: CounterRecord,
        requested_service_id: Optional[int] = None
    ) -> ServiceRecord:
        services = ServiceRepository(tx)
        assignments = await services.assignments_for_agent(agent_id)

        if requested_service_id is not None:
            service = await services.get_active(requested_service_id)
            if service is None:
                raise ServiceNotFoundError("Requested service not found")
            if assignments and not self._is_assigned(assignments, requested_service_id):
                raise AuthorizationError("Agent is not assigned to this service")
            return service

        service: Optional[ServiceRecord]
        if assignments:
            service = await services.get_active(assignments[0].service_id)
        else:
            service = None
            if counter.default_service_id is not None:
                service = await services.get_active(counter.default_service_id)
            if service is None:
                service = await services.first_active()

        if service is None:
            logger.warning(
                "No service could be resolved for call-next",
                extra={"agent_id": agent_id, "counter_id": counter.id}
            )
            raise ServiceResolutionError("Unable to determine service for agent")
        return service

    @staticmethod
    def _is_assigned(assignments: List[AgentServiceAssignment], service_id: int) -> bool:
        return any(a.service_id == service_id for a in assignments)

    async def is_authorized(self, tx: Transaction, agent_id: int, service_id: int) -> bool:
        """Whether the agent holds an assignment for the service"""
        assignments = await ServiceRepository(tx).assignments_for_agent(agent_id)
        return self._is_assigned(assignments, service_id)
