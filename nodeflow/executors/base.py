"""Shared contract for node executors."""

from __future__ import annotations

import abc
import logging
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from ..contracts import ExecutionContext, NodeStatus
from ..errors import MissingConfiguration, NodeflowError
from ..status import StatusPublisher
from ..steps import StepRunner
from ..templating import TemplateEngine

logger = logging.getLogger(__name__)


class NodeExecutor(metaclass=abc.ABCMeta):
    """The unit of work behind one node type.

    ``execute`` drives the state machine shared by every node type: publish
    ``loading``, validate required fields in declaration order, run the
    type-specific effect, then publish ``success`` or ``error``. Each status
    is published at most once per run. A retriable failure on an attempt
    that is not the last leaves the node without a terminal status, so the
    next attempt can still report ``success``. Subclasses
    implement :meth:`run` and must return a new context without mutating the
    one they were given.
    """

    required_fields: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        node_type: str,
        channel: str,
        templates: Optional[TemplateEngine] = None,
    ) -> None:
        self.node_type = node_type
        self.channel = channel
        self.templates = templates or TemplateEngine()

    def validate(self, data: Mapping[str, Any]) -> None:
        for field in self.required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingConfiguration(field, node_type=self.node_type)

    async def execute(
        self,
        *,
        data: Dict[str, Any],
        node_id: str,
        context: ExecutionContext,
        step: StepRunner,
        publish: StatusPublisher,
        owner_id: Optional[str] = None,
        final_attempt: bool = True,
    ) -> ExecutionContext:
        await publish.record(step, node_id, NodeStatus.LOADING, channel=self.channel)
        try:
            self.validate(data)
            new_context = await self.run(
                data=data,
                node_id=node_id,
                context=context,
                step=step,
                owner_id=owner_id,
            )
        except Exception as e:
            if not final_attempt and isinstance(e, NodeflowError) and e.retriable:
                # The run will be attempted again; the node is still in flight.
                logger.warning(f"{self.node_type} node {node_id} failed, retrying run: {e}")
                raise
            logger.error(f"{self.node_type} node {node_id} failed: {e}")
            await publish.record(step, node_id, NodeStatus.ERROR, channel=self.channel)
            raise
        await publish.record(step, node_id, NodeStatus.SUCCESS, channel=self.channel)
        return new_context

    @abc.abstractmethod
    async def run(
        self,
        *,
        data: Dict[str, Any],
        node_id: str,
        context: ExecutionContext,
        step: StepRunner,
        owner_id: Optional[str],
    ) -> ExecutionContext:
        """Perform the node's effect and return the merged context."""
        raise NotImplementedError
