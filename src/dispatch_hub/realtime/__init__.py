"""Realtime command hub."""

from .connections import Connection, ConnectionRegistry, RelayInterest
from .hub import RealtimeHub

__all__ = ["Connection", "ConnectionRegistry", "RealtimeHub", "RelayInterest"]
