"""Read-only sources of workflow definitions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol

import yaml
from pydantic import ValidationError

from .contracts import WorkflowGraph
from .errors import InvalidGraph, WorkflowNotFound

logger = logging.getLogger(__name__)

_SUFFIXES = (".yaml", ".yml", ".json")


class WorkflowSource(Protocol):
    """Fetches the graph of a workflow by id."""

    async def get_workflow(self, workflow_id: str) -> WorkflowGraph:
        """Return the workflow or raise :class:`WorkflowNotFound`."""


class InMemoryWorkflowSource(WorkflowSource):
    """Serve workflow graphs held in a dictionary."""

    def __init__(self, workflows: Iterable[WorkflowGraph] = ()) -> None:
        self._workflows: Dict[str, WorkflowGraph] = {w.id: w for w in workflows}

    def add(self, workflow: WorkflowGraph) -> None:
        self._workflows[workflow.id] = workflow

    async def get_workflow(self, workflow_id: str) -> WorkflowGraph:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFound(workflow_id)
        return workflow.model_copy(deep=True)


def parse_workflow(data: dict, default_id: Optional[str] = None) -> WorkflowGraph:
    """Validate a workflow document into a :class:`WorkflowGraph`."""
    if default_id is not None:
        data = {"id": default_id, **data}
    try:
        return WorkflowGraph.model_validate(data)
    except ValidationError as e:
        raise InvalidGraph(f"Invalid workflow document: {e}") from e


class YamlWorkflowSource(WorkflowSource):
    """Load workflows from ``<workflow_id>.yaml|.yml|.json`` files in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _find(self, workflow_id: str) -> Optional[Path]:
        for suffix in _SUFFIXES:
            candidate = self.directory / f"{workflow_id}{suffix}"
            if candidate.is_file() and candidate.parent == self.directory:
                return candidate
        return None

    async def get_workflow(self, workflow_id: str) -> WorkflowGraph:
        if not workflow_id or "/" in workflow_id or "\\" in workflow_id:
            raise WorkflowNotFound(workflow_id)
        path = self._find(workflow_id)
        if path is None:
            raise WorkflowNotFound(workflow_id)

        logger.debug(f"Loading workflow {workflow_id} from {path}")
        with open(path) as f:
            try:
                if path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise InvalidGraph(f"Workflow document {path} is malformed: {e}") from e
        if not isinstance(data, dict):
            raise InvalidGraph(f"Workflow document {path} must be a mapping")
        return parse_workflow(data, default_id=workflow_id)
