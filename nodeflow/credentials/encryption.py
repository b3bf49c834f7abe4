"""Symmetric encryption of stored credential values."""

from __future__ import annotations

import base64
import binascii

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import ConfigurationError, CredentialDecryptionError

_KDF_SALT = b"nodeflow-credential-encryption-v1"
_KDF_ITERATIONS = 100_000


def _derive_key(secret: str) -> bytes:
    """Return a Fernet key for ``secret``.

    A valid Fernet key is used as-is; any other passphrase is stretched with
    PBKDF2 so operators can configure a plain secret.
    """
    raw = secret.encode("utf-8")
    try:
        if len(base64.urlsafe_b64decode(raw)) == 32:
            return raw
    except (binascii.Error, ValueError):
        pass
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_KDF_SALT,
        iterations=_KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(raw))


class CredentialCipher:
    """Encrypts and decrypts credential values with a process-wide key."""

    def __init__(self, secret: str | None) -> None:
        if not secret:
            raise ConfigurationError(
                "Encryption key is not configured (set NODEFLOW_ENCRYPTION_KEY)"
            )
        self._fernet = Fernet(_derive_key(secret))

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise CredentialDecryptionError(
                "Stored credential could not be decrypted with the configured key"
            ) from e
