"""Route group exports."""

from . import health, realtime, relay, reports

__all__ = ["health", "realtime", "relay", "reports"]
