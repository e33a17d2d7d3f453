"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    AgentFlowError,
    GraphStructureError,
    CycleDetectedError,
    UnreachableNodesError,
    ConfigurationError,
    MissingAdapterError,
    InvalidNodeConfigError,
    ProviderError,
    AuthenticationError,
    ParsingError,
    WorkflowError,
    FlowAlreadyRunningError,
)
from config.logging_config import setup_logging
from config.settings import RunSettings, Settings, get_settings

__all__ = [
    "Settings",
    "RunSettings",
    "get_settings",
    "setup_logging",
    "AgentFlowError",
    "GraphStructureError",
    "CycleDetectedError",
    "UnreachableNodesError",
    "ConfigurationError",
    "MissingAdapterError",
    "InvalidNodeConfigError",
    "ProviderError",
    "AuthenticationError",
    "ParsingError",
    "WorkflowError",
    "FlowAlreadyRunningError",
]
