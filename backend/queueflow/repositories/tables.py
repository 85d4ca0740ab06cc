"""Store Schema - SQLAlchemy table mappings"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, TypeDecorator
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..utils.time import utc_now


class UTCDateTime(TypeDecorator):
    """DateTime that always comes back timezone-aware in UTC.

    SQLite drops tzinfo on the way in; values are normalised to UTC before
    binding and re-tagged on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class ServiceRecord(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    prefix: Mapped[str] = mapped_column(String(8), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    range_start: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    range_end: Mapped[int] = mapped_column(Integer, nullable=False, default=999)
    current_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    estimated_service_time: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TicketRecord(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_service_state", "service_id", "state"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_number: Mapped[str] = mapped_column(String(16), nullable=False)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default="waiting")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    called_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    served_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    estimated_wait: Mapped[Optional[int]] = mapped_column(Integer)
    actual_wait: Mapped[Optional[int]] = mapped_column(Integer)
    service_duration: Mapped[Optional[int]] = mapped_column(Integer)
    counter_id: Mapped[Optional[int]] = mapped_column(ForeignKey("counters.id"))
    agent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("agents.id"))
    recall_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    original_service_id: Mapped[Optional[int]] = mapped_column(Integer)
    transferred_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    customer_name: Mapped[Optional[str]] = mapped_column(String(200))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50))
    customer_email: Mapped[Optional[str]] = mapped_column(String(200))


class CounterRecord(Base):
    __tablename__ = "counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(120))
    state: Mapped[str] = mapped_column(String(16), nullable=False, default="offline")
    # No FK to tickets: the reset deletes tickets after clearing this column
    current_ticket_id: Mapped[Optional[int]] = mapped_column(Integer)
    current_agent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("agents.id"))
    default_service_id: Mapped[Optional[int]] = mapped_column(ForeignKey("services.id"))
    location: Mapped[Optional[str]] = mapped_column(String(120))


class AgentRecord(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(80), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class AgentServiceRecord(Base):
    __tablename__ = "agent_services"

    agent_id: Mapped[int] = mapped_column(ForeignKey("agents.id"), primary_key=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"), primary_key=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class EventRecord(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    actor_id: Mapped[Optional[int]] = mapped_column(Integer)
    counter_id: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now, index=True)


class SettingRecord(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)
