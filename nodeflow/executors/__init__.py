"""Node executors and the default registry."""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from ..config import NodeflowConfig, load_config
from ..contracts import NodeType
from ..credentials import CredentialResolver
from ..providers import (
    ProviderFactory,
    anthropic_provider,
    gemini_provider,
    openai_provider,
)
from ..templating import TemplateEngine
from .base import NodeExecutor
from .http import HttpRequestExecutor
from .model import ModelExecutor
from .registry import ExecutorRegistry
from .triggers import TriggerExecutor

DEFAULT_PROVIDERS: Dict[NodeType, ProviderFactory] = {
    NodeType.OPENAI: openai_provider,
    NodeType.GEMINI: gemini_provider,
    NodeType.ANTHROPIC: anthropic_provider,
}


def build_registry(
    resolver: CredentialResolver,
    config: Optional[NodeflowConfig] = None,
    providers: Optional[Dict[NodeType, ProviderFactory]] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExecutorRegistry:
    """Build the frozen registry of every supported node type."""

    config = config or load_config()
    providers = {**DEFAULT_PROVIDERS, **(providers or {})}
    templates = TemplateEngine()
    registry = ExecutorRegistry()

    manual = TriggerExecutor(NodeType.MANUAL_TRIGGER.value, "manual-trigger", templates)
    registry.register(NodeType.INITIAL.value, manual)
    registry.register(NodeType.MANUAL_TRIGGER.value, manual)
    registry.register(
        NodeType.GOOGLE_FORM_TRIGGER.value,
        TriggerExecutor(NodeType.GOOGLE_FORM_TRIGGER.value, "google-form-trigger", templates),
    )
    registry.register(
        NodeType.STRIPE_TRIGGER.value,
        TriggerExecutor(NodeType.STRIPE_TRIGGER.value, "stripe-trigger", templates),
    )
    registry.register(
        NodeType.HTTP_REQUEST.value,
        HttpRequestExecutor(
            NodeType.HTTP_REQUEST.value,
            "http-request",
            templates,
            timeout=config.http.timeout,
            transport=http_transport,
        ),
    )

    default_models = {
        NodeType.OPENAI: config.models.openai,
        NodeType.GEMINI: config.models.gemini,
        NodeType.ANTHROPIC: config.models.anthropic,
    }
    for node_type, default_model in default_models.items():
        registry.register(
            node_type.value,
            ModelExecutor(
                node_type.value,
                node_type.value.lower(),
                provider_factory=providers[node_type],
                resolver=resolver,
                default_model=default_model,
                templates=templates,
            ),
        )

    return registry.freeze()


__all__ = [
    "NodeExecutor",
    "TriggerExecutor",
    "ModelExecutor",
    "HttpRequestExecutor",
    "ExecutorRegistry",
    "build_registry",
]
