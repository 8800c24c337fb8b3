"""Error types raised by services and reported by the realtime hub."""

from __future__ import annotations


class DispatchError(Exception):
    """Base error carrying a user-facing detail message."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class CommandValidationError(DispatchError):
    """A command payload is missing a required field."""


class NotFoundError(DispatchError):
    """The record targeted by an update or delete does not exist."""


class UpstreamError(DispatchError):
    """The record store or the messaging relay failed."""


class RecordValidationError(UpstreamError):
    """The record store rejected a document that violates the collection schema."""


class RelayError(UpstreamError):
    """The messaging relay could not complete an operation."""
