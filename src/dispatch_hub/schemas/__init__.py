"""API and realtime payload schemas."""
