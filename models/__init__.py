"""Models package: flow graph records, narrative memory, and enums."""

from models.debug import DebugRecord
from models.flow import FlowEdge, FlowGraph, FlowNode, FlowOutput, OutlineEntry
from models.memory import NarrativeMemory, default_memory, merge_narrative_memory
from models.enums import (
    NodeType,
    NodeKind,
    NodeStatus,
    FlowMode,
    RunStatus,
)

__all__ = [
    "DebugRecord",
    "FlowEdge",
    "FlowGraph",
    "FlowNode",
    "FlowOutput",
    "OutlineEntry",
    "NarrativeMemory",
    "default_memory",
    "merge_narrative_memory",
    "NodeType",
    "NodeKind",
    "NodeStatus",
    "FlowMode",
    "RunStatus",
]
