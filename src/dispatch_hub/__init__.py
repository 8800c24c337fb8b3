"""Real-time delivery dispatch backend."""

__version__ = "0.1.0"
