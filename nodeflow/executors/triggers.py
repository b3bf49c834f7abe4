"""Trigger nodes: entry points that pass the initial data through."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..contracts import ExecutionContext
from ..steps import StepRunner
from .base import NodeExecutor


def _snapshot(context: ExecutionContext) -> ExecutionContext:
    return dict(context)


class TriggerExecutor(NodeExecutor):
    """Marks the start of a run; the trigger payload is already in context."""

    async def run(
        self,
        *,
        data: Dict[str, Any],
        node_id: str,
        context: ExecutionContext,
        step: StepRunner,
        owner_id: Optional[str],
    ) -> ExecutionContext:
        return await step.run(f"{node_id}:{self.channel}", _snapshot, context)
