"""Wire a dispatcher from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

import httpx

from .config import NodeflowConfig, load_config
from .contracts import NodeType
from .credentials import (
    CredentialCipher,
    CredentialResolver,
    CredentialStore,
    InMemoryCredentialStore,
)
from .definitions import WorkflowSource, YamlWorkflowSource
from .dispatch import WorkflowDispatcher
from .engine import WorkflowEngine
from .executors import build_registry
from .persistence import WorkflowRepository, get_repository
from .providers import ProviderFactory
from .transports import BaseTransport, get_transport


def build_dispatcher(
    source: Union[WorkflowSource, str, Path],
    credentials: Optional[CredentialStore] = None,
    config: Optional[NodeflowConfig] = None,
    repository: Optional[WorkflowRepository] = None,
    transport: Optional[BaseTransport] = None,
    providers: Optional[Dict[NodeType, ProviderFactory]] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> WorkflowDispatcher:
    """Assemble registry, engine and dispatcher.

    ``source`` may be a :class:`WorkflowSource` or a directory of workflow
    documents. Collaborators not supplied are built from ``config``.
    """

    explicit_config = config is not None
    config = config or load_config()
    if isinstance(source, (str, Path)):
        source = YamlWorkflowSource(source)
    cipher = CredentialCipher(config.encryption_key) if config.encryption_key else None
    resolver = CredentialResolver(credentials or InMemoryCredentialStore(), cipher)
    registry = build_registry(
        resolver, config=config, providers=providers, http_transport=http_transport
    )
    if repository is None:
        repository = get_repository(config=config) if explicit_config else get_repository()
    transport = transport or get_transport(config=config)
    engine = WorkflowEngine(source, registry, repository, transport)
    return WorkflowDispatcher(engine, repository, config.engine)
