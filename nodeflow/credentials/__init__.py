"""Credential storage contract, encryption and resolution."""

from __future__ import annotations

from .encryption import CredentialCipher
from .resolver import CredentialResolver
from .store import (
    Credential,
    CredentialStore,
    InMemoryCredentialStore,
    YamlCredentialStore,
)

__all__ = [
    "Credential",
    "CredentialCipher",
    "CredentialResolver",
    "CredentialStore",
    "InMemoryCredentialStore",
    "YamlCredentialStore",
]
