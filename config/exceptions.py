"""Custom exception hierarchy for agent flow execution."""

from typing import Optional


class AgentFlowError(Exception):
    """Base exception for all agent flow errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Graph Errors (fatal to the whole run) ----

class GraphStructureError(AgentFlowError):
    """The node/edge graph cannot be scheduled."""


class CycleDetectedError(GraphStructureError):
    """Two or more nodes depend on each other."""

    def __init__(self, node_ids: list[str]):
        self.node_ids = list(node_ids)
        super().__init__(
            f"Cycle detected in flow: node {self.node_ids[0]} is part of a circular dependency",
            {"nodes": ", ".join(self.node_ids)},
        )


class UnreachableNodesError(GraphStructureError):
    """Nodes that can never be reached from a root node."""

    def __init__(self, node_ids: list[str]):
        self.node_ids = list(node_ids)
        super().__init__(f"Unreachable nodes detected: {', '.join(self.node_ids)}")


# ---- Configuration Errors (fatal to one node) ----

class ConfigurationError(AgentFlowError):
    """A node cannot be executed with its current configuration."""


class MissingAdapterError(ConfigurationError):
    """No adapter is registered for the node's model id."""

    def __init__(self, model_id: str):
        super().__init__(f"Missing adapter for model: {model_id}", {"model_id": model_id})
        self.model_id = model_id


class InvalidNodeConfigError(ConfigurationError):
    """Node configuration failed validation."""

    def __init__(self, errors: list[str], node_id: str = ""):
        self.errors = list(errors)
        details = {"node_id": node_id} if node_id else {}
        super().__init__(f"Invalid configuration: {', '.join(self.errors)}", details)


# ---- Provider Errors (fatal to one node) ----

class ProviderError(AgentFlowError):
    """Model provider returned an error or an unusable response."""

    def __init__(self, message: str = "Unknown API error", status: Optional[int] = None,
                 details: Optional[dict] = None):
        merged = dict(details or {})
        if status is not None:
            merged["status"] = status
        super().__init__(message, merged)
        self.status = status


class AuthenticationError(ProviderError):
    """No active session or credential for a real model call."""

    def __init__(self, message: str = "Authentication required. Please sign in to execute real model calls."):
        super().__init__(message, status=401)


# ---- Parsing Errors (internal, always converted to a fallback value) ----

class ParsingError(AgentFlowError):
    """Structured data could not be extracted from model text."""

    def __init__(self, message: str = "Failed to parse model output", raw_output: str = ""):
        details = {"raw_output": raw_output[:200]} if raw_output else {}
        super().__init__(message, details)
        self.raw_output = raw_output


# ---- Workflow Errors ----

class WorkflowError(AgentFlowError):
    """Base exception for flow orchestration errors."""


class FlowAlreadyRunningError(WorkflowError):
    """A run was started while a previous run is still in progress."""

    def __init__(self):
        super().__init__("A flow run is already in progress")
