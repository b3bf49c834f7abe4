"""HTTP request node."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..constants import DEFAULT_HTTP_TIMEOUT
from ..contracts import ExecutionContext
from ..errors import ConfigurationError, NonRetriableEffectError, RetriableEffectError
from ..utils.retry import is_permanent_status
from ..steps import StepRunner
from ..templating import TemplateEngine
from .base import NodeExecutor

logger = logging.getLogger(__name__)

_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE"}
_BODY_METHODS = {"POST", "PUT", "PATCH"}


class HttpRequestExecutor(NodeExecutor):
    """Calls an HTTP endpoint and stores the response under ``variableName``.

    ``endpoint`` and ``body`` are templates. A body that parses as JSON is
    sent as JSON; anything else is sent as raw content.
    """

    required_fields = ("variableName", "endpoint")

    def __init__(
        self,
        node_type: str,
        channel: str,
        templates: Optional[TemplateEngine] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(node_type, channel, templates)
        self._timeout = timeout
        self._transport = transport

    async def run(
        self,
        *,
        data: Dict[str, Any],
        node_id: str,
        context: ExecutionContext,
        step: StepRunner,
        owner_id: Optional[str],
    ) -> ExecutionContext:
        method = str(data.get("method") or "GET").upper()
        if method not in _METHODS:
            raise ConfigurationError(f"{self.node_type} node: unsupported method {method}")

        endpoint = self.templates.render(data["endpoint"], context)
        body = None
        if method in _BODY_METHODS and data.get("body"):
            body = self.templates.render(data["body"], context)

        response = await step.run(
            f"{node_id}:http-request", self._request, method, endpoint, body
        )
        return {**context, data["variableName"]: {"httpResponse": response}}

    async def _request(self, method: str, endpoint: str, body: Optional[str]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if body is not None:
            try:
                kwargs["json"] = json.loads(body)
            except ValueError:
                kwargs["content"] = body

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, endpoint, **kwargs)
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
                raise NonRetriableEffectError(f"Invalid endpoint {endpoint!r}: {e}") from e
            except httpx.HTTPError as e:
                raise RetriableEffectError(f"{method} {endpoint} failed: {e}") from e

        logger.info(f"{method} {endpoint} -> {response.status_code}")
        if response.status_code >= 400:
            message = f"{method} {endpoint} returned {response.status_code}"
            if is_permanent_status(response.status_code):
                raise NonRetriableEffectError(message)
            raise RetriableEffectError(message)

        if "application/json" in response.headers.get("content-type", ""):
            try:
                payload: Any = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = response.text
        return {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "data": payload,
        }
