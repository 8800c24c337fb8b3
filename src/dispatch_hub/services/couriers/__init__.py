"""Courier service exports."""

from .credentials import (
    CredentialVerifier,
    PlaintextPasswordVerifier,
    UsernameOnlyVerifier,
    get_credential_verifier,
)
from .service import CourierService

__all__ = [
    "CourierService",
    "CredentialVerifier",
    "PlaintextPasswordVerifier",
    "UsernameOnlyVerifier",
    "get_credential_verifier",
]
