"""Dependency resolution: turn a flow's nodes into execution levels.

A node's level is ``0`` when it has no inputs, otherwise one more than the
highest level among its predecessors. Nodes in the same level have no
dependency on each other and may run concurrently.
"""

import logging
from collections import deque

from config.exceptions import CycleDetectedError, GraphStructureError, UnreachableNodesError
from models.flow import FlowNode

logger = logging.getLogger(__name__)


def _index_nodes(nodes: list[FlowNode]) -> dict[str, FlowNode]:
    by_id: dict[str, FlowNode] = {}
    for node in nodes:
        if node.id in by_id:
            raise GraphStructureError(f"Duplicate node id: {node.id}", {"node_id": node.id})
        by_id[node.id] = node
    return by_id


def _cycle_members(pending: set[str], dependents: dict[str, list[str]]) -> list[str]:
    """Nodes left after repeatedly pruning pending nodes with no pending dependents.

    Every survivor has an outgoing edge to another survivor, so the
    survivors contain at least one cycle. Empty when there is none.
    """
    remaining = set(pending)
    out_degree = {
        node_id: sum(1 for d in dependents[node_id] if d in remaining)
        for node_id in remaining
    }
    predecessors: dict[str, list[str]] = {node_id: [] for node_id in remaining}
    for node_id in remaining:
        for dependent in dependents[node_id]:
            if dependent in remaining:
                predecessors[dependent].append(node_id)

    sinks = deque(node_id for node_id, degree in out_degree.items() if degree == 0)
    while sinks:
        node_id = sinks.popleft()
        remaining.discard(node_id)
        for pred in predecessors[node_id]:
            if pred in remaining:
                out_degree[pred] -= 1
                if out_degree[pred] == 0:
                    sinks.append(pred)
    return sorted(remaining)


def resolve_dag(nodes: list[FlowNode]) -> list[list[FlowNode]]:
    """Group ``nodes`` into dependency levels using Kahn's algorithm.

    Within a level nodes keep the order they were given in.

    Raises:
        GraphStructureError: Two nodes share an id.
        CycleDetectedError: Some nodes depend on themselves through a cycle.
        UnreachableNodesError: Some nodes reference missing inputs, or
            only become ready through such nodes.
    """
    by_id = _index_nodes(nodes)
    position = {node.id: i for i, node in enumerate(nodes)}

    dependents: dict[str, list[str]] = {node_id: [] for node_id in by_id}
    in_degree: dict[str, int] = {}
    dangling: list[str] = []
    for node in nodes:
        inputs = list(dict.fromkeys(node.input_node_ids))
        known = [i for i in inputs if i in by_id]
        if len(known) != len(inputs):
            dangling.append(node.id)
        for source in known:
            dependents[source].append(node.id)
        # A missing input can never be satisfied, so count it as a blocker
        in_degree[node.id] = len(inputs)

    level_of: dict[str, int] = {}
    ready = deque(node.id for node in nodes if in_degree[node.id] == 0)
    for node_id in ready:
        level_of[node_id] = 0

    while ready:
        node_id = ready.popleft()
        for dependent in dependents[node_id]:
            level_of[dependent] = max(level_of.get(dependent, 0), level_of[node_id] + 1)
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                ready.append(dependent)

    pending = {node_id for node_id, degree in in_degree.items() if degree > 0}
    if pending:
        cycle = _cycle_members(pending, dependents)
        if cycle:
            logger.error("Cycle detected among nodes: %s", ", ".join(cycle))
            raise CycleDetectedError(cycle)
        unreachable = sorted(pending, key=position.__getitem__)
        logger.error(
            "Unreachable nodes: %s (missing inputs on: %s)",
            ", ".join(unreachable), ", ".join(dangling) or "none",
        )
        raise UnreachableNodesError(unreachable)

    depth = max(level_of.values(), default=-1) + 1
    levels: list[list[FlowNode]] = [[] for _ in range(depth)]
    for node in nodes:
        levels[level_of[node.id]].append(node)

    logger.debug(
        "Resolved %d nodes into %d levels: %s",
        len(nodes), len(levels), [[n.id for n in level] for level in levels],
    )
    return levels
