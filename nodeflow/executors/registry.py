"""Lookup table from node-type tag to executor."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from ..errors import UnknownNodeType
from .base import NodeExecutor


def _tag(node_type: object) -> str:
    return node_type.value if isinstance(node_type, Enum) else str(node_type)


class ExecutorRegistry:
    """Maps node-type tags to executors.

    Populated once at process start, then frozen and shared read-only by
    every run.
    """

    def __init__(self) -> None:
        self._executors: Dict[str, NodeExecutor] = {}
        self._frozen = False

    def register(self, node_type: str, executor: NodeExecutor) -> None:
        if self._frozen:
            raise RuntimeError("Executor registry is frozen")
        self._executors[_tag(node_type)] = executor

    def freeze(self) -> "ExecutorRegistry":
        self._frozen = True
        return self

    def get(self, node_type: str) -> NodeExecutor:
        try:
            return self._executors[_tag(node_type)]
        except KeyError:
            raise UnknownNodeType(_tag(node_type)) from None

    def node_types(self) -> List[str]:
        return list(self._executors)

    def __contains__(self, node_type: object) -> bool:
        return _tag(node_type) in self._executors
