"""Model provider capability consumed by model-call executors."""

from __future__ import annotations

from typing import Callable, Optional, Protocol


class ModelProvider(Protocol):
    """Generates text for a system and user prompt."""

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's text output."""


# Builds a provider bound to a decrypted API key and an optional model name.
ProviderFactory = Callable[[str, Optional[str]], ModelProvider]
