"""Topological ordering of workflow graphs."""

from __future__ import annotations

import heapq
import logging
from typing import Dict, Iterable, List, Set, Tuple

from .contracts import Connection, Node
from .errors import CycleDetected, InvalidGraph

logger = logging.getLogger(__name__)


def topological_sort(nodes: Iterable[Node], connections: Iterable[Connection]) -> List[Node]:
    """Order ``nodes`` so every connection's source precedes its target.

    Uses Kahn's algorithm. Whenever several nodes are ready at once, the one
    declared first wins, so the same graph always yields the same order.

    Raises:
        InvalidGraph: If node ids repeat or a connection names an unknown node.
        CycleDetected: If some nodes can never become ready.
    """
    ordered_nodes = list(nodes)
    index: Dict[str, int] = {}
    for position, node in enumerate(ordered_nodes):
        if node.id in index:
            raise InvalidGraph(f"Duplicate node id: {node.id}")
        index[node.id] = position

    edges: Set[Tuple[int, int]] = set()
    for connection in connections:
        for endpoint in (connection.from_node, connection.to_node):
            if endpoint not in index:
                raise InvalidGraph(
                    f"Connection {connection.from_node} -> {connection.to_node} "
                    f"references unknown node {endpoint}"
                )
        edges.add((index[connection.from_node], index[connection.to_node]))

    in_degree = [0] * len(ordered_nodes)
    downstream: Dict[int, List[int]] = {i: [] for i in range(len(ordered_nodes))}
    for source, target in edges:
        in_degree[target] += 1
        downstream[source].append(target)

    ready = [i for i, degree in enumerate(in_degree) if degree == 0]
    heapq.heapify(ready)
    order: List[int] = []

    while ready:
        current = heapq.heappop(ready)
        order.append(current)
        for target in downstream[current]:
            in_degree[target] -= 1
            if in_degree[target] == 0:
                heapq.heappush(ready, target)

    if len(order) != len(ordered_nodes):
        residual = [ordered_nodes[i].id for i, degree in enumerate(in_degree) if degree > 0]
        logger.error(f"Cycle detected involving nodes: {residual}")
        raise CycleDetected(residual)

    return [ordered_nodes[i] for i in order]
