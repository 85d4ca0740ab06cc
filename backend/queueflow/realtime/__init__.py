"""Realtime broadcast to connected displays"""
from .broadcaster import RealtimeBroadcaster, service_channel

__all__ = ["RealtimeBroadcaster", "service_channel"]
