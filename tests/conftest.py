import asyncio
from typing import List, Optional

import pytest

from nodeflow.config import NodeflowConfig
from nodeflow.contracts import NodeType, StatusEvent
from nodeflow.credentials import (
    Credential,
    CredentialCipher,
    CredentialResolver,
    InMemoryCredentialStore,
)
from nodeflow.executors import build_registry
from nodeflow.persistence import InMemoryWorkflowRepository
from nodeflow.transports import InMemoryTransport

OWNER_ID = "user-1"
API_KEY = "sk-test-key"


class FakeProvider:
    """Records every generation request and returns canned text."""

    def __init__(self, text: str = "generated text", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.text


class FakeProviderFactory:
    def __init__(self, provider: FakeProvider):
        self.provider = provider
        self.requests: List[tuple] = []

    def __call__(self, api_key: str, model_name: Optional[str] = None) -> FakeProvider:
        self.requests.append((api_key, model_name))
        return self.provider


def drain(queue: asyncio.Queue) -> List[StatusEvent]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


@pytest.fixture
def config() -> NodeflowConfig:
    return NodeflowConfig(encryption_key="test-secret")


@pytest.fixture
def cipher(config) -> CredentialCipher:
    return CredentialCipher(config.encryption_key)


@pytest.fixture
def credential_store(cipher) -> InMemoryCredentialStore:
    return InMemoryCredentialStore(
        [
            Credential(
                id="cred-1",
                owner_id=OWNER_ID,
                encrypted_value=cipher.encrypt(API_KEY),
            )
        ]
    )


@pytest.fixture
def resolver(credential_store, cipher) -> CredentialResolver:
    return CredentialResolver(credential_store, cipher)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def provider_factory(provider) -> FakeProviderFactory:
    return FakeProviderFactory(provider)


@pytest.fixture
def registry(resolver, config, provider_factory):
    return build_registry(
        resolver,
        config=config,
        providers={
            NodeType.OPENAI: provider_factory,
            NodeType.GEMINI: provider_factory,
            NodeType.ANTHROPIC: provider_factory,
        },
    )


@pytest.fixture
def repository() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()
