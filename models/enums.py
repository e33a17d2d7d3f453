"""Enumerations for flow graphs and run status tracking."""

from enum import Enum


class NodeType(str, Enum):
    INPUT = "input"
    MODEL = "model"
    ACTION = "action"
    OUTPUT = "output"
    INPUT_PROMPT = "inputPrompt"
    ERROR = "error"  # Only used on FlowOutput records


class NodeKind(str, Enum):
    CHAPTER = "chapter"
    DIALOGUE = "dialogue"
    SUMMARY = "summary"
    RETROINJECT = "retroinject"
    COMPILER = "compiler"
    OUTLINE = "outline"


class FlowMode(str, Enum):
    DEFAULT = "default"
    NOVEL = "novel"


class RunStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class NodeStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    ERROR = "error"
