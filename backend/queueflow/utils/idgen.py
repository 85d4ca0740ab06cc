"""Opaque identifiers for realtime subscribers and request tracing"""
import uuid
from typing import Optional

from .time import utc_now


def generate_id(prefix: Optional[str] = None, length: int = 12) -> str:
    """
    Random hex token, optionally prefixed.

    >>> generate_id("SUB")  # doctest: +SKIP
    'SUB-a1b2c3d4e5f6'
    """
    token = uuid.uuid4().hex[:length]
    return f"{prefix}-{token}" if prefix else token


def generate_subscriber_id() -> str:
    return generate_id("SUB")


def generate_correlation_id() -> str:
    """COR-<UTC yyyymmddHHMMSS>-<8 hex>, sortable by issue time"""
    return generate_id(f"COR-{utc_now():%Y%m%d%H%M%S}", length=8)
