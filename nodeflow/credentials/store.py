"""Credential sources consumed by the resolver."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

import yaml
from pydantic import BaseModel, Field


class Credential(BaseModel):
    """A stored secret scoped to one owner."""

    id: str
    owner_id: str
    encrypted_value: str = Field(alias="encryptedValue")

    model_config = {"populate_by_name": True}


class CredentialStore(Protocol):
    """Read-only access to stored, encrypted credentials."""

    async def fetch_credential(self, credential_id: str, owner_id: str) -> Optional[str]:
        """Return the encrypted value, or ``None`` if absent or not owned."""


class InMemoryCredentialStore(CredentialStore):
    """Keep credentials in a local dictionary."""

    def __init__(self, credentials: Iterable[Credential] = ()) -> None:
        self._credentials: Dict[str, Credential] = {c.id: c for c in credentials}

    def add(self, credential: Credential) -> None:
        self._credentials[credential.id] = credential

    async def fetch_credential(self, credential_id: str, owner_id: str) -> Optional[str]:
        credential = self._credentials.get(credential_id)
        if credential is None or credential.owner_id != owner_id:
            return None
        return credential.encrypted_value


class YamlCredentialStore(InMemoryCredentialStore):
    """Load credentials from a YAML document.

    The document is a list of ``{id, owner_id, encrypted_value}`` mappings,
    optionally nested under a top-level ``credentials`` key.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        with open(self.path) as f:
            data = yaml.safe_load(f) or []
        if isinstance(data, dict):
            data = data.get("credentials", [])
        entries: List[Credential] = [Credential.model_validate(item) for item in data]
        super().__init__(entries)
