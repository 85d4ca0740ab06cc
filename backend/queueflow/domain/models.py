"""Domain Models - Pydantic schemas for all entities

These are the canonical internal representation (snake_case only). Wire
shapes are produced by ``queueflow.views``.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import CounterState, EventType, EntityType, LifecycleOperation, TicketState


class DomainModel(BaseModel):
    """Base for models hydrated from store records"""
    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Entities
# ============================================================================

class Ticket(DomainModel):
    """A customer's place in a service queue"""
    id: int
    ticket_number: str
    service_id: int
    priority: int = Field(default=0, ge=0, le=2)
    state: TicketState = TicketState.WAITING
    created_at: datetime
    called_at: Optional[datetime] = None
    served_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_wait: Optional[int] = None
    actual_wait: Optional[int] = None
    service_duration: Optional[int] = None
    counter_id: Optional[int] = None
    agent_id: Optional[int] = None
    recall_count: int = 0
    original_service_id: Optional[int] = None
    transferred_at: Optional[datetime] = None
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None


class Counter(DomainModel):
    """A physical or logical service point"""
    id: int
    number: int
    name: Optional[str] = None
    state: CounterState = CounterState.OFFLINE
    current_agent_id: Optional[int] = None
    current_ticket_id: Optional[int] = None
    default_service_id: Optional[int] = None
    location: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or f"Counter {self.number}"


class Service(DomainModel):
    """A queue category with its own numbering sequence"""
    id: int
    name: str
    prefix: str
    description: Optional[str] = None
    range_start: int = 1
    range_end: int = 999
    current_number: int = 0
    estimated_service_time: int = 300
    is_active: bool = True


class AgentServiceAssignment(BaseModel):
    """Service an agent may serve, with its preference"""
    service_id: int
    name: str
    prefix: str
    description: Optional[str] = None
    priority: int = 0


class AuditEvent(DomainModel):
    """Append-only audit record"""
    id: int
    event_type: EventType
    entity_type: EntityType
    entity_id: int
    data: Dict[str, Any] = Field(default_factory=dict)
    actor_id: Optional[int] = None
    counter_id: Optional[int] = None
    created_at: datetime


# ============================================================================
# Queue Snapshot
# ============================================================================

class QueuedTicket(DomainModel):
    """Waiting-pool entry as shown in a snapshot"""
    id: int
    ticket_number: str
    service_id: int
    priority: int = 0
    created_at: datetime
    estimated_wait: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    state: TicketState = TicketState.WAITING

    @property
    def is_recycled(self) -> bool:
        return self.state == TicketState.RECYCLED


class QueueSnapshot(BaseModel):
    """Point-in-time read of a service's queue"""
    service_id: int
    waiting: int = 0
    serving: int = 0
    tickets: List[QueuedTicket] = Field(default_factory=list)

    @classmethod
    def empty(cls, service_id: int) -> "QueueSnapshot":
        return cls(service_id=service_id)


# ============================================================================
# Operation Results
# ============================================================================

class TransitionOutcome(BaseModel):
    """Result of a committed lifecycle transition"""
    operation: LifecycleOperation
    ticket: Ticket
    service_name: str
    previous_state: TicketState
    counter_id: int
    agent_id: int
    queue: QueueSnapshot
    occurred_at: datetime
    requested_position: Optional[int] = None


class TransferOutcome(BaseModel):
    """Result of a committed transfer"""
    ticket: Ticket
    previous_ticket_id: int
    from_service_id: int
    target_service_name: str
    counter_id: int
    agent_id: int
    from_queue: QueueSnapshot
    to_queue: QueueSnapshot


class IssuedTicket(BaseModel):
    """Result of kiosk intake"""
    ticket: Ticket
    service_name: str
    queue_position: int
    queue: QueueSnapshot


class ServiceOverview(BaseModel):
    """Active service with live counts for the kiosk"""
    service: Service
    waiting: int = 0
    serving: int = 0
    current_serving: Optional[str] = None


class ServiceRef(BaseModel):
    """Short service reference used in summaries"""
    id: int
    name: str
    prefix: str


class PresetResult(BaseModel):
    """Result of a queue preset"""
    inserted_tickets: List[QueuedTicket] = Field(default_factory=list)
    skipped_tickets: List[str] = Field(default_factory=list)
    service: ServiceRef
    final_number: int
    queue: QueueSnapshot


class ResetSummary(BaseModel):
    """Result of a system reset attempt"""
    skipped: bool = False
    message: Optional[str] = None
    deleted_tickets: int = 0
    services: List[ServiceRef] = Field(default_factory=list)
    reset_at: Optional[datetime] = None
    reason: Optional[str] = None
