"""Domain Enumerations - All state and type definitions"""
from enum import Enum


class TicketState(str, Enum):
    """Lifecycle state of a ticket"""
    WAITING = "waiting"
    RECYCLED = "recycled"  # Functionally waiting; kept apart for display grouping
    CALLED = "called"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# States that make up a service's waiting pool
WAITING_POOL_STATES = (TicketState.WAITING, TicketState.RECYCLED)


class CounterState(str, Enum):
    """Service point availability"""
    OFFLINE = "offline"
    AVAILABLE = "available"
    SERVING = "serving"
    BREAK = "break"


class EventType(str, Enum):
    """Audit event types (append-only log)"""
    TICKET_CREATED = "TICKET_CREATED"
    TICKET_CALLED = "TICKET_CALLED"
    TICKET_RECALLED = "TICKET_RECALLED"
    TICKET_COMPLETED = "TICKET_COMPLETED"
    TICKET_NO_SHOW = "TICKET_NO_SHOW"
    TICKET_RECYCLED = "TICKET_RECYCLED"
    TICKET_TRANSFERRED = "TICKET_TRANSFERRED"
    SYSTEM_RESET = "SYSTEM_RESET"
    QUEUE_PRESET = "QUEUE_PRESET"


class EntityType(str, Enum):
    """Entity an audit event refers to"""
    TICKET = "ticket"
    SERVICE = "service"
    SYSTEM = "system"


class RealtimeEvent(str, Enum):
    """Event names pushed to realtime subscribers"""
    TICKET_CREATED = "ticket-created"
    TICKET_CALLED = "ticket-called"
    TICKET_COMPLETED = "ticket-completed"
    TICKET_RECYCLED = "ticket-recycled"
    TICKET_TRANSFERRED = "ticket-transferred"
    QUEUE_UPDATED = "queue-updated"
    SYSTEM_ALERT = "system-alert"
    SUBSCRIBED = "subscribed"
    PONG = "pong"


class Channel(str, Enum):
    """Broadcast audiences"""
    KIOSK = "kiosk"
    TERMINAL = "terminal"
    MONITOR = "monitor"


class LifecycleOperation(str, Enum):
    """Operations of the ticket lifecycle engine"""
    CALL_NEXT = "call_next"
    COMPLETE = "complete"
    RECALL = "recall"
    NO_SHOW = "no_show"
    RECYCLE = "recycle"
    TRANSFER = "transfer"
