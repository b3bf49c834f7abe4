"""Model providers for AI node executors."""

from __future__ import annotations

from .base import ModelProvider, ProviderFactory
from .agent import (
    PydanticAIProvider,
    anthropic_provider,
    gemini_provider,
    openai_provider,
)

__all__ = [
    "ModelProvider",
    "ProviderFactory",
    "PydanticAIProvider",
    "openai_provider",
    "gemini_provider",
    "anthropic_provider",
]
