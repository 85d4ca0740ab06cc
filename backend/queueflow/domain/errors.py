"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {"error": self.message}


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class InvalidStateError(DomainError):
    """Transition not valid for the ticket's current state"""
    error_code = "INVALID_STATE"
    http_status = 400


class TicketAlreadyCompletedError(InvalidStateError):
    """Ticket was completed before"""
    error_code = "TICKET_ALREADY_COMPLETED"


class ServiceResolutionError(DomainError):
    """No service could be resolved for call-next"""
    error_code = "SERVICE_RESOLUTION_ERROR"
    http_status = 400


# Authorization Errors
class AuthorizationError(DomainError):
    """Agent lacks rights for the requested service"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class TicketNotFoundError(NotFoundError):
    """Ticket missing or not in the state the transition needs"""
    error_code = "TICKET_NOT_FOUND"


class NoTicketsWaitingError(NotFoundError):
    """Waiting pool of the service is empty"""
    error_code = "NO_TICKETS_WAITING"


class ServiceNotFoundError(NotFoundError):
    """Service not found or inactive"""
    error_code = "SERVICE_NOT_FOUND"


class CounterNotFoundError(NotFoundError):
    """Counter not found"""
    error_code = "COUNTER_NOT_FOUND"


class AgentNotFoundError(NotFoundError):
    """Agent not found"""
    error_code = "AGENT_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class TicketRangeExhaustedError(ConflictError):
    """Service has issued every number in its range"""
    error_code = "TICKET_RANGE_EXHAUSTED"


# Store Errors
class StoreError(DomainError):
    """Persistent store failure"""
    error_code = "STORE_ERROR"
    http_status = 500
