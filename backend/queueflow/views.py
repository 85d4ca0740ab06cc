"""
Wire Views - Map internal models to API and broadcast payloads

Internal models are snake_case only. Clients (kiosk, terminal, monitor)
consume camelCase objects, and snapshot ticket entries carry both spellings
for older displays.
"""
import math
from typing import Any, Dict, List

from .domain.enums import LifecycleOperation
from .domain.models import (
    AgentServiceAssignment, Counter, IssuedTicket, PresetResult, QueuedTicket, QueueSnapshot,
    ResetSummary, ServiceOverview, ServiceRef, TransferOutcome, TransitionOutcome
)
from .utils.time import format_iso

DEFAULT_CUSTOMER_NAME = "Customer"


# ============================================================================
# Snapshots
# ============================================================================

def queued_ticket_view(ticket: QueuedTicket) -> Dict[str, Any]:
    created_at = format_iso(ticket.created_at)
    state = ticket.state.value
    recycled = ticket.is_recycled
    return {
        "id": ticket.id,
        "ticket_number": ticket.ticket_number,
        "ticketNumber": ticket.ticket_number,
        "number": ticket.ticket_number,
        "service_id": ticket.service_id,
        "serviceId": ticket.service_id,
        "priority": ticket.priority,
        "created_at": created_at,
        "createdAt": created_at,
        "estimated_wait": ticket.estimated_wait,
        "estimatedWait": ticket.estimated_wait,
        "customer_name": ticket.customer_name,
        "customerName": ticket.customer_name,
        "customer_phone": ticket.customer_phone,
        "customerPhone": ticket.customer_phone,
        "state": state,
        "ticketState": state,
        "isRecycled": recycled,
        "is_recycled": recycled,
        "recycled": recycled,
    }


def snapshot_view(snapshot: QueueSnapshot) -> Dict[str, Any]:
    return {
        "serviceId": snapshot.service_id,
        "service_id": snapshot.service_id,
        "waiting": snapshot.waiting,
        "serving": snapshot.serving,
        "tickets": [queued_ticket_view(t) for t in snapshot.tickets],
    }


# ============================================================================
# Lifecycle transitions
# ============================================================================

def transition_ticket_view(outcome: TransitionOutcome) -> Dict[str, Any]:
    """Ticket object returned for a lifecycle operation"""
    ticket = outcome.ticket
    view: Dict[str, Any] = {
        "id": ticket.id,
        "number": ticket.ticket_number,
        "ticketNumber": ticket.ticket_number,
        "serviceId": ticket.service_id,
        "serviceName": outcome.service_name,
        "state": ticket.state.value,
    }
    operation = outcome.operation

    if operation == LifecycleOperation.RECYCLE:
        view["recycledAt"] = format_iso(outcome.occurred_at)
        view["requestedPosition"] = outcome.requested_position
        return view

    view["counterId"] = outcome.counter_id
    view["agentId"] = outcome.agent_id

    if operation in (LifecycleOperation.CALL_NEXT, LifecycleOperation.RECALL):
        view["customerName"] = ticket.customer_name or DEFAULT_CUSTOMER_NAME
        view["calledAt"] = format_iso(ticket.called_at)
        view["recallCount"] = ticket.recall_count
    elif operation == LifecycleOperation.COMPLETE:
        view["completedAt"] = format_iso(ticket.completed_at)
        view["serviceDuration"] = ticket.service_duration
        view["actualWait"] = ticket.actual_wait
    elif operation == LifecycleOperation.NO_SHOW:
        view["completedAt"] = format_iso(ticket.completed_at)
    return view


def transition_response(outcome: TransitionOutcome) -> Dict[str, Any]:
    return {
        "ticket": transition_ticket_view(outcome),
        "queueUpdate": snapshot_view(outcome.queue),
    }


def transfer_ticket_view(outcome: TransferOutcome) -> Dict[str, Any]:
    ticket = outcome.ticket
    return {
        "id": ticket.id,
        "previousId": outcome.previous_ticket_id,
        "oldNumber": ticket.ticket_number,
        "newNumber": ticket.ticket_number,
        "number": ticket.ticket_number,
        "state": ticket.state.value,
        "serviceId": ticket.service_id,
        "serviceName": outcome.target_service_name,
        "fromServiceId": outcome.from_service_id,
        "originalServiceId": ticket.original_service_id,
        "transferredAt": format_iso(ticket.transferred_at),
        "priority": ticket.priority,
        "createdAt": format_iso(ticket.created_at),
        "customerName": ticket.customer_name,
        "customerPhone": ticket.customer_phone,
        "customerEmail": ticket.customer_email,
        "counterId": None,
        "agentId": None,
    }


def transfer_response(outcome: TransferOutcome) -> Dict[str, Any]:
    return {
        "success": True,
        "ticket": transfer_ticket_view(outcome),
        "queueUpdate": {
            "fromService": snapshot_view(outcome.from_queue),
            "toService": snapshot_view(outcome.to_queue),
        },
    }


# ============================================================================
# Kiosk
# ============================================================================

def issued_ticket_view(issued: IssuedTicket) -> Dict[str, Any]:
    ticket = issued.ticket
    estimated_wait = ticket.estimated_wait or 0
    return {
        "id": ticket.id,
        "ticketNumber": ticket.ticket_number,
        "number": ticket.ticket_number,
        "serviceId": ticket.service_id,
        "serviceName": issued.service_name,
        "state": ticket.state.value,
        "priority": ticket.priority,
        "customerName": ticket.customer_name,
        "estimatedWait": estimated_wait,
        "estimatedWaitMinutes": math.ceil(estimated_wait / 60),
        "createdAt": format_iso(ticket.created_at),
        "queuePosition": issued.queue_position,
    }


def service_overview_view(overview: ServiceOverview) -> Dict[str, Any]:
    service = overview.service
    estimated_wait = overview.waiting * service.estimated_service_time
    return {
        "id": service.id,
        "name": service.name,
        "prefix": service.prefix,
        "description": service.description or f"{service.name} - Professional service",
        "queueCount": overview.waiting,
        "waiting": overview.waiting,
        "serving": overview.serving,
        "servingCount": overview.serving,
        "currentServing": overview.current_serving,
        "nowServing": overview.current_serving or "None",
        "estimatedWaitMinutes": math.ceil(estimated_wait / 60),
        "averageServiceTime": service.estimated_service_time,
    }


# ============================================================================
# Terminal / counters
# ============================================================================

def agent_service_view(assignment: AgentServiceAssignment) -> Dict[str, Any]:
    return {
        "id": assignment.service_id,
        "service_id": assignment.service_id,
        "name": assignment.name,
        "prefix": assignment.prefix,
        "description": assignment.description,
        "priority": assignment.priority,
    }


def counter_view(counter: Counter) -> Dict[str, Any]:
    return {
        "id": counter.id,
        "number": counter.number,
        "name": counter.display_name,
        "state": counter.state.value,
        "currentAgentId": counter.current_agent_id,
        "currentTicketId": counter.current_ticket_id,
        "defaultServiceId": counter.default_service_id,
        "location": counter.location,
    }


# ============================================================================
# Admin
# ============================================================================

def service_ref_view(ref: ServiceRef) -> Dict[str, Any]:
    return {"id": ref.id, "name": ref.name, "prefix": ref.prefix}


def reset_summary_view(summary: ResetSummary) -> Dict[str, Any]:
    if summary.skipped:
        return {"skipped": True, "message": summary.message}
    return {
        "success": True,
        "skipped": False,
        "deletedTickets": summary.deleted_tickets,
        "services": [service_ref_view(s) for s in summary.services],
        "resetAt": format_iso(summary.reset_at),
        "reason": summary.reason,
    }


def preset_result_view(result: PresetResult) -> Dict[str, Any]:
    return {
        "success": True,
        "service": service_ref_view(result.service),
        "insertedCount": len(result.inserted_tickets),
        "insertedTickets": [queued_ticket_view(t) for t in result.inserted_tickets],
        "skippedTickets": result.skipped_tickets,
        "finalNumber": result.final_number,
        "queue": snapshot_view(result.queue),
    }


def counters_view(counters: List[Counter]) -> Dict[str, Any]:
    return {"counters": [counter_view(c) for c in counters]}


def reset_status_view(status: Dict[str, Any]) -> Dict[str, Any]:
    summary = status.get("last_reset_summary")
    return {
        "enabled": status["enabled"],
        "resetTime": status["reset_time"],
        "nextRunAt": format_iso(status.get("next_run_at")),
        "lastResetAt": format_iso(status.get("last_reset_at")),
        "lastResetReason": status.get("last_reset_reason"),
        "lastResetSummary": reset_summary_view(summary) if summary else None,
        "inProgress": status.get("in_progress", False),
    }
