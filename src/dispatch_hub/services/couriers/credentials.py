"""Pluggable courier credential checks.

The stored ``senha`` is plaintext. Verification is isolated here so a hashed
scheme can replace it without touching the hub.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ...models.domain import Courier


class CredentialVerifier(ABC):
    @abstractmethod
    def verify(self, courier: Courier, secret: str | None) -> bool:
        raise NotImplementedError


class UsernameOnlyVerifier(CredentialVerifier):
    """Accepts any courier found by userName; a supplied ``senha`` is ignored."""

    def verify(self, courier: Courier, secret: str | None) -> bool:
        return True


class PlaintextPasswordVerifier(CredentialVerifier):
    """Compares the supplied secret with the stored ``senha`` by equality."""

    def verify(self, courier: Courier, secret: str | None) -> bool:
        return secret is not None and courier.password == secret


def get_credential_verifier(mode: str) -> CredentialVerifier:
    if mode == "plaintext":
        return PlaintextPasswordVerifier()
    if mode == "username":
        return UsernameOnlyVerifier()
    raise ValueError(f"Unknown courier authentication mode '{mode}'")
