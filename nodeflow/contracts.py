"""Core data contracts for the nodeflow workflow runtime."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

ExecutionContext = Dict[str, Any]


class NodeType(str, Enum):
    """Tags selecting a node executor."""

    INITIAL = "INITIAL"
    MANUAL_TRIGGER = "MANUAL_TRIGGER"
    GOOGLE_FORM_TRIGGER = "GOOGLE_FORM_TRIGGER"
    STRIPE_TRIGGER = "STRIPE_TRIGGER"
    HTTP_REQUEST = "HTTP_REQUEST"
    OPENAI = "OPENAI"
    GEMINI = "GEMINI"
    ANTHROPIC = "ANTHROPIC"


class NodeStatus(str, Enum):
    """Lifecycle of a node within one run."""

    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class Node(BaseModel):
    """A single configured unit of work in a workflow graph."""

    id: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


class Connection(BaseModel):
    """A dependency edge: ``from_node`` must run before ``to_node``."""

    model_config = ConfigDict(populate_by_name=True)

    from_node: str = Field(alias="from")
    to_node: str = Field(alias="to")


class WorkflowGraph(BaseModel):
    """A workflow definition as supplied by the definition store."""

    id: str
    owner_id: Optional[str] = None
    name: Optional[str] = None
    nodes: List[Node] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)


class StatusEvent(BaseModel):
    """Status transition of one node within one run."""

    run_id: str
    node_id: str
    status: NodeStatus
    channel: str = "workflow"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        """Serialize event to JSON."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "StatusEvent":
        """Deserialize event from JSON."""
        return cls.model_validate_json(data)


class TriggerEvent(BaseModel):
    """Request to start a workflow run."""

    workflow_id: str
    initial_data: Dict[str, Any] = Field(default_factory=dict)
    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class RunResult(BaseModel):
    """Outcome of a completed run."""

    workflow_id: str
    run_id: str
    result: ExecutionContext = Field(default_factory=dict)


def run_topic(run_id: str) -> str:
    """Return the status topic scoped to ``run_id``."""
    return f"run:{run_id}"


__all__ = [
    "ExecutionContext",
    "NodeType",
    "NodeStatus",
    "Node",
    "Connection",
    "WorkflowGraph",
    "StatusEvent",
    "TriggerEvent",
    "RunResult",
    "run_topic",
]
