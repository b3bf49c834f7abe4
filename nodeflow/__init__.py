"""nodeflow: durable execution of node-based automation workflows."""

from .bootstrap import build_dispatcher
from .contracts import (
    Connection,
    Node,
    NodeStatus,
    NodeType,
    RunResult,
    StatusEvent,
    TriggerEvent,
    WorkflowGraph,
)
from .dispatch import WorkflowDispatcher
from .engine import WorkflowEngine
from .executors import ExecutorRegistry, NodeExecutor, build_registry
from .graph import topological_sort
from .persistence import get_repository
from .status import StatusPublisher
from .steps import StepRunner
from .templating import TemplateEngine
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "Connection",
    "Node",
    "NodeStatus",
    "NodeType",
    "RunResult",
    "StatusEvent",
    "TriggerEvent",
    "WorkflowGraph",
    "WorkflowDispatcher",
    "WorkflowEngine",
    "ExecutorRegistry",
    "NodeExecutor",
    "build_registry",
    "build_dispatcher",
    "topological_sort",
    "get_repository",
    "get_transport",
    "StatusPublisher",
    "StepRunner",
    "TemplateEngine",
]
