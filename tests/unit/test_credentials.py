"""Credential encryption, storage and resolution tests."""

import base64
import os

import pytest

from nodeflow.credentials import (
    Credential,
    CredentialCipher,
    CredentialResolver,
    InMemoryCredentialStore,
    YamlCredentialStore,
)
from nodeflow.errors import (
    ConfigurationError,
    CredentialDecryptionError,
    CredentialNotFound,
)
from nodeflow.persistence import InMemoryWorkflowRepository
from nodeflow.steps import StepRunner

from conftest import API_KEY, OWNER_ID


def test_cipher_round_trip_with_passphrase():
    cipher = CredentialCipher("a plain passphrase")
    token = cipher.encrypt("secret-value")
    assert token != "secret-value"
    assert cipher.decrypt(token) == "secret-value"


def test_cipher_accepts_fernet_key():
    key = base64.urlsafe_b64encode(os.urandom(32)).decode()
    cipher = CredentialCipher(key)
    assert cipher.decrypt(cipher.encrypt("v")) == "v"


def test_cipher_same_passphrase_decrypts_across_instances():
    token = CredentialCipher("shared").encrypt("value")
    assert CredentialCipher("shared").decrypt(token) == "value"


def test_cipher_wrong_key_fails():
    token = CredentialCipher("key-one").encrypt("value")
    with pytest.raises(CredentialDecryptionError):
        CredentialCipher("key-two").decrypt(token)


def test_cipher_garbage_token_fails():
    with pytest.raises(CredentialDecryptionError):
        CredentialCipher("key").decrypt("not-a-token")


@pytest.mark.parametrize("secret", [None, ""])
def test_cipher_requires_key(secret):
    with pytest.raises(ConfigurationError):
        CredentialCipher(secret)


@pytest.mark.asyncio
async def test_store_scopes_credentials_to_owner(credential_store):
    assert await credential_store.fetch_credential("cred-1", OWNER_ID) is not None
    assert await credential_store.fetch_credential("cred-1", "someone-else") is None
    assert await credential_store.fetch_credential("missing", OWNER_ID) is None


@pytest.mark.asyncio
async def test_yaml_store_loads_nested_document(tmp_path, cipher):
    path = tmp_path / "credentials.yaml"
    path.write_text(
        f"""
credentials:
  - id: cred-yaml
    owner_id: {OWNER_ID}
    encryptedValue: {cipher.encrypt("yaml-key")}
"""
    )
    store = YamlCredentialStore(path)
    encrypted = await store.fetch_credential("cred-yaml", OWNER_ID)
    assert cipher.decrypt(encrypted) == "yaml-key"


@pytest.mark.asyncio
async def test_yaml_store_accepts_plain_list(tmp_path):
    path = tmp_path / "credentials.yaml"
    path.write_text("- {id: a, owner_id: o, encrypted_value: x}\n")
    store = YamlCredentialStore(path)
    assert await store.fetch_credential("a", "o") == "x"


@pytest.mark.asyncio
async def test_resolver_returns_plaintext(resolver):
    assert await resolver.resolve("cred-1", OWNER_ID) == API_KEY


@pytest.mark.asyncio
async def test_resolver_rejects_other_owner(resolver):
    with pytest.raises(CredentialNotFound) as exc_info:
        await resolver.resolve("cred-1", "intruder")
    assert exc_info.value.retriable is False


@pytest.mark.asyncio
async def test_resolver_without_owner_fails(resolver):
    with pytest.raises(CredentialNotFound):
        await resolver.resolve("cred-1", None)


@pytest.mark.asyncio
async def test_resolver_memoizes_only_ciphertext(resolver):
    repo = InMemoryWorkflowRepository()
    step = StepRunner("run-1", repo)

    value = await resolver.resolve(
        "cred-1", OWNER_ID, step=step, step_key="n1:get-credential"
    )

    assert value == API_KEY
    record = await repo.get_step("run-1", "n1:get-credential")
    assert record.output != API_KEY
    assert API_KEY not in str(record.output)


@pytest.mark.asyncio
async def test_resolver_without_cipher_reports_configuration_error(credential_store):
    resolver = CredentialResolver(credential_store, None)
    with pytest.raises(ConfigurationError):
        await resolver.resolve("cred-1", OWNER_ID)


@pytest.mark.asyncio
async def test_resolver_with_wrong_key_fails_to_decrypt(credential_store):
    resolver = CredentialResolver(credential_store, CredentialCipher("other-key"))
    with pytest.raises(CredentialDecryptionError):
        await resolver.resolve("cred-1", OWNER_ID)


def test_credential_accepts_both_field_spellings():
    a = Credential.model_validate({"id": "x", "owner_id": "o", "encryptedValue": "v"})
    b = Credential(id="x", owner_id="o", encrypted_value="v")
    assert a == b


@pytest.mark.asyncio
async def test_in_memory_store_add():
    store = InMemoryCredentialStore()
    store.add(Credential(id="x", owner_id="o", encrypted_value="v"))
    assert await store.fetch_credential("x", "o") == "v"
