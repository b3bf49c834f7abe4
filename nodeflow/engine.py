"""Workflow execution engine for nodeflow."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from .constants import PREPARE_STEP_KEY
from .contracts import ExecutionContext, Node, NodeStatus, RunResult
from .definitions import WorkflowSource
from .errors import MissingConfiguration, RunCancelled, UnknownNodeType
from .executors import ExecutorRegistry
from .graph import topological_sort
from .persistence import WorkflowRepository
from .persistence.models import RUN_CANCELLED
from .status import StatusPublisher
from .steps import StepRunner
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Walks a workflow graph in dependency order, one node at a time.

    The graph is loaded and sorted inside the ``prepare-workflow`` step, so a
    retried run replays the same order. Each node's executor receives the
    context produced by its predecessor; the first failure aborts the walk
    and no further nodes run, even on independent branches.
    """

    def __init__(
        self,
        source: WorkflowSource,
        registry: ExecutorRegistry,
        repository: WorkflowRepository,
        transport: BaseTransport,
    ) -> None:
        self._source = source
        self._registry = registry
        self._repository = repository
        self._transport = transport

    async def _prepare(self, workflow_id: str) -> Dict[str, Any]:
        workflow = await self._source.get_workflow(workflow_id)
        ordered = topological_sort(workflow.nodes, workflow.connections)
        logger.info(
            f"Prepared workflow {workflow_id}: {[node.id for node in ordered]}"
        )
        return {
            "owner_id": workflow.owner_id,
            "nodes": [node.model_dump() for node in ordered],
        }

    async def _ensure_not_cancelled(self, run_id: str) -> None:
        run = await self._repository.get_run(run_id)
        if run is not None and run.status == RUN_CANCELLED:
            logger.info(f"Run {run_id} cancelled, stopping before next node")
            raise RunCancelled(run_id)

    async def run(
        self,
        workflow_id: str,
        initial_data: Optional[ExecutionContext] = None,
        run_id: Optional[str] = None,
        final_attempt: bool = True,
    ) -> RunResult:
        """Execute ``workflow_id`` and return the final context.

        Args:
            workflow_id: Id of the workflow in the definition source.
            initial_data: Trigger-supplied data seeding the context.
            run_id: Id scoping the step ledger and status topic. Re-using the
                id of an earlier attempt skips its completed steps.
            final_attempt: Whether a retriable node failure ends the run. When
                ``False`` the failing node gets no terminal status, since the
                caller will attempt the run again.
        """
        if not workflow_id:
            raise MissingConfiguration("workflowId")

        run_id = run_id or str(uuid.uuid4())
        step = StepRunner(run_id, self._repository)
        publish = StatusPublisher(self._transport, run_id)

        prepared = await step.run(PREPARE_STEP_KEY, self._prepare, workflow_id)
        nodes = [Node.model_validate(raw) for raw in prepared["nodes"]]
        owner_id = prepared.get("owner_id")

        context: ExecutionContext = dict(initial_data or {})
        for node in nodes:
            await self._ensure_not_cancelled(run_id)
            try:
                executor = self._registry.get(node.type)
            except UnknownNodeType:
                await publish.record(step, node.id, NodeStatus.LOADING)
                await publish.record(step, node.id, NodeStatus.ERROR)
                raise
            logger.info(f"Run {run_id}: executing node {node.id} ({node.type})")
            context = await executor.execute(
                data=node.data,
                node_id=node.id,
                context=context,
                step=step,
                publish=publish,
                owner_id=owner_id,
                final_attempt=final_attempt,
            )

        logger.info(f"Run {run_id} of workflow {workflow_id} completed")
        return RunResult(workflow_id=workflow_id, run_id=run_id, result=context)
