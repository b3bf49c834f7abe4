"""Model providers backed by pydantic-ai agents."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior

from ..constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
)
from ..errors import NonRetriableEffectError, RetriableEffectError
from ..utils.retry import is_permanent_status

logger = logging.getLogger(__name__)


class PydanticAIProvider:
    """Runs a one-shot pydantic-ai agent for each generation request."""

    def __init__(self, model: Any, vendor: str = "custom") -> None:
        self.model = model
        self.vendor = vendor

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        agent = Agent(self.model, system_prompt=system_prompt)
        try:
            result = await agent.run(user_prompt)
        except ModelHTTPError as e:
            if is_permanent_status(e.status_code):
                raise NonRetriableEffectError(
                    f"{self.vendor} rejected the request ({e.status_code}): {e.message}"
                ) from e
            raise RetriableEffectError(
                f"{self.vendor} request failed ({e.status_code}): {e.message}"
            ) from e
        except UnexpectedModelBehavior as e:
            raise RetriableEffectError(
                f"{self.vendor} returned an unexpected response: {e}"
            ) from e
        logger.debug(f"{self.vendor} generated {len(result.output)} characters")
        return result.output


def openai_provider(api_key: str, model_name: Optional[str] = None) -> PydanticAIProvider:
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    model = OpenAIChatModel(
        model_name or DEFAULT_OPENAI_MODEL, provider=OpenAIProvider(api_key=api_key)
    )
    return PydanticAIProvider(model, vendor="openai")


def gemini_provider(api_key: str, model_name: Optional[str] = None) -> PydanticAIProvider:
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    model = GoogleModel(
        model_name or DEFAULT_GEMINI_MODEL, provider=GoogleProvider(api_key=api_key)
    )
    return PydanticAIProvider(model, vendor="gemini")


def anthropic_provider(api_key: str, model_name: Optional[str] = None) -> PydanticAIProvider:
    from pydantic_ai.models.anthropic import AnthropicModel
    from pydantic_ai.providers.anthropic import AnthropicProvider

    model = AnthropicModel(
        model_name or DEFAULT_ANTHROPIC_MODEL,
        provider=AnthropicProvider(api_key=api_key),
    )
    return PydanticAIProvider(model, vendor="anthropic")
