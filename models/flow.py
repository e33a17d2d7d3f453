"""Flow graph data models: nodes, edges, graphs, and execution records."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from models.enums import NodeStatus, NodeType


@dataclass
class FlowNode:
    """A unit of computation in a flow graph.

    Built fresh from a graph snapshot at the start of a run; only the
    orchestrator touches ``status`` and ``output`` while the run is live.
    """
    id: str
    type: str = NodeType.MODEL.value
    model_id: Optional[str] = None
    config: dict[str, Any] = field(default_factory=dict)
    input_node_ids: list[str] = field(default_factory=list)
    prompt: Optional[str] = None
    node_kind: Optional[str] = None
    status: NodeStatus = NodeStatus.IDLE
    output: Any = None

    @property
    def label(self) -> str:
        return str(self.config.get("label") or f"Node {self.id}")

    @property
    def is_prompt_source(self) -> bool:
        return self.type == NodeType.INPUT_PROMPT.value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowNode":
        """Build a node from a graph description (camelCase or snake_case keys)."""
        node_type = data.get("type") or NodeType.MODEL.value
        if isinstance(node_type, NodeType):
            node_type = node_type.value
        config = dict(data.get("config") or {})
        if data.get("label") and "label" not in config:
            config["label"] = data["label"]
        prompt = data.get("prompt")
        return cls(
            id=str(data["id"]),
            type=str(node_type),
            model_id=data.get("modelId", data.get("model_id")),
            config=config,
            input_node_ids=list(data.get("inputNodeIds", data.get("input_node_ids")) or []),
            prompt=str(prompt) if prompt is not None else None,
            node_kind=data.get("nodeKind", data.get("node_kind")),
        )


@dataclass(frozen=True)
class FlowEdge:
    """Directed edge: ``source`` output feeds ``target``."""
    source: str
    target: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowEdge":
        return cls(source=str(data["source"]), target=str(data["target"]))


@dataclass
class FlowGraph:
    """Node/edge description of a flow, as handed over by the editor."""
    nodes: list[FlowNode] = field(default_factory=list)
    edges: list[FlowEdge] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowGraph":
        return cls(
            nodes=[FlowNode.from_dict(n) for n in data.get("nodes", [])],
            edges=[FlowEdge.from_dict(e) for e in data.get("edges", [])],
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "FlowGraph":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def to_flow_nodes(self) -> list[FlowNode]:
        """Return fresh node copies whose ``input_node_ids`` include every edge source.

        Edges define membership only; duplicates are dropped and the
        first-seen order is kept.
        """
        sources: dict[str, list[str]] = {}
        for edge in self.edges:
            sources.setdefault(edge.target, []).append(edge.source)

        result = []
        for node in self.nodes:
            input_ids = list(dict.fromkeys([*node.input_node_ids, *sources.get(node.id, [])]))
            result.append(FlowNode(
                id=node.id,
                type=node.type,
                model_id=node.model_id,
                config=dict(node.config),
                input_node_ids=input_ids,
                prompt=node.prompt,
                node_kind=node.node_kind,
            ))
        return result


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class FlowOutput:
    """One execution record per node per run (append-only log entry)."""
    node_id: str
    node_name: str
    node_type: str
    output: Any
    input: Any = None
    model_id: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)
    execution_time: int = 0  # milliseconds
    config: Optional[dict[str, Any]] = None

    @property
    def is_error(self) -> bool:
        return self.node_type == NodeType.ERROR.value

    def to_dict(self) -> dict[str, Any]:
        record = {
            "nodeId": self.node_id,
            "nodeName": self.node_name,
            "nodeType": self.node_type,
            "timestamp": self.timestamp,
            "input": self.input,
            "output": self.output,
            "executionTime": self.execution_time,
        }
        if self.model_id is not None:
            record["modelId"] = self.model_id
        if self.config is not None:
            record["config"] = self.config
        return record


@dataclass(frozen=True)
class OutlineEntry:
    """One chapter of a parsed outline."""
    title: str
    summary: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "summary": self.summary}
