"""Owner-scoped credential lookup and decryption."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import ConfigurationError, CredentialNotFound
from ..steps import StepRunner
from .encryption import CredentialCipher
from .store import CredentialStore

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Fetches a stored secret for its owner and decrypts it locally.

    Only the ciphertext ever passes through the step ledger; the plain value
    lives in memory for the duration of the caller's effect.
    """

    def __init__(
        self, store: CredentialStore, cipher: Optional[CredentialCipher]
    ) -> None:
        self._store = store
        self._cipher = cipher

    async def _fetch(self, credential_id: str, owner_id: Optional[str]) -> str:
        encrypted = None
        if owner_id:
            encrypted = await self._store.fetch_credential(credential_id, owner_id)
        if encrypted is None:
            logger.info(f"Credential {credential_id} not available to owner {owner_id}")
            raise CredentialNotFound(credential_id)
        return encrypted

    async def resolve(
        self,
        credential_id: str,
        owner_id: Optional[str],
        step: Optional[StepRunner] = None,
        step_key: Optional[str] = None,
    ) -> str:
        if step is not None:
            encrypted = await step.run(
                step_key or f"credential:{credential_id}",
                self._fetch,
                credential_id,
                owner_id,
            )
        else:
            encrypted = await self._fetch(credential_id, owner_id)
        if self._cipher is None:
            raise ConfigurationError(
                "Encryption key is not configured (set NODEFLOW_ENCRYPTION_KEY)"
            )
        return self._cipher.decrypt(encrypted)
