"""
Request Schemas

Request models for the terminal, kiosk and admin endpoints. Bodies are
accepted in camelCase (the display clients) or snake_case.
"""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Terminal
# =============================================================================

class CallNextRequest(RequestModel):
    """Claim the next ticket (or a specific one) for a counter"""
    counter_id: int = Field(..., gt=0)
    agent_id: int = Field(..., gt=0)
    service_id: Optional[int] = Field(None, gt=0)
    ticket_id: Optional[int] = Field(None, gt=0)


class TicketActionRequest(RequestModel):
    """Act on a ticket held by a counter/agent"""
    ticket_id: int = Field(..., gt=0)
    counter_id: int = Field(..., gt=0)
    agent_id: int = Field(..., gt=0)


class CompleteRequest(TicketActionRequest):
    notes: Optional[str] = Field(None, max_length=2000)


class RecycleRequest(TicketActionRequest):
    position: Optional[int] = Field(None, gt=0)


class TransferRequest(TicketActionRequest):
    target_service_id: int = Field(..., gt=0)


# =============================================================================
# Kiosk
# =============================================================================

class CreateTicketRequest(RequestModel):
    """Issue a ticket from the kiosk"""
    service_id: int = Field(..., gt=0)
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[EmailStr] = None
    priority: int = Field(0, ge=0, le=2)

    @field_validator("customer_name", "customer_phone", "customer_email", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


# =============================================================================
# Admin
# =============================================================================

class SystemResetRequest(RequestModel):
    reason: str = Field("manual", min_length=1, max_length=200)
    silent: bool = False


class PresetQueueRequest(RequestModel):
    """Pre-populate a service queue"""
    service_id: int = Field(..., gt=0)
    start_number: int = Field(..., ge=0)
    count: int = Field(..., gt=0)
    priority: int = Field(0, ge=0, le=2)


class ResetConfigRequest(RequestModel):
    reset_time: str
    daily_reset: Union[bool, str] = False
