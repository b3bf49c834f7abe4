"""AI model-call nodes (OpenAI, Gemini, Anthropic)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..constants import DEFAULT_SYSTEM_PROMPT
from ..contracts import ExecutionContext
from ..credentials import CredentialResolver
from ..providers import ProviderFactory
from ..steps import StepRunner
from ..templating import TemplateEngine
from .base import NodeExecutor

logger = logging.getLogger(__name__)


class ModelExecutor(NodeExecutor):
    """Renders prompts, resolves the owner's API key and calls a model.

    The node writes ``{"text": <output>}`` under its ``variableName``.
    """

    required_fields = ("variableName", "userPrompt", "credentialId")

    def __init__(
        self,
        node_type: str,
        channel: str,
        provider_factory: ProviderFactory,
        resolver: CredentialResolver,
        default_model: Optional[str] = None,
        templates: Optional[TemplateEngine] = None,
    ) -> None:
        super().__init__(node_type, channel, templates)
        self._provider_factory = provider_factory
        self._resolver = resolver
        self._default_model = default_model

    async def run(
        self,
        *,
        data: Dict[str, Any],
        node_id: str,
        context: ExecutionContext,
        step: StepRunner,
        owner_id: Optional[str],
    ) -> ExecutionContext:
        system_prompt = self.templates.render(
            data.get("systemPrompt") or DEFAULT_SYSTEM_PROMPT, context
        )
        user_prompt = self.templates.render(data["userPrompt"], context)

        api_key = await self._resolver.resolve(
            data["credentialId"],
            owner_id,
            step=step,
            step_key=f"{node_id}:get-credential",
        )
        provider = self._provider_factory(api_key, data.get("model") or self._default_model)

        text = await step.run(
            f"{node_id}:{self.channel}-generate-text",
            provider.generate,
            system_prompt,
            user_prompt,
        )
        logger.info(f"{self.node_type} node {node_id} wrote '{data['variableName']}'")
        return {**context, data["variableName"]: {"text": text}}
