"""Workflow package: DAG resolution, node execution, orchestration, validation."""

from workflow.callbacks import FlowCallback, LoggingCallback, RichProgressCallback
from workflow.dag import resolve_dag
from workflow.debug_log import DebugLog
from workflow.executor import NodeExecutor, NodeResult
from workflow.orchestrator import FlowOrchestrator, FlowRunResult, run_simulated_flow, sanitize_output
from workflow.prompts import PROMPT_BUILDERS, PromptContext, build_prompt
from workflow.validation import (
    PROVIDER_CATALOG,
    ValidationResult,
    validate_adapter_implementations,
    validate_before_execution,
    validate_configuration_compatibility,
    validate_flow_node_config,
    validate_model_system,
    validate_registry_consistency,
)

__all__ = [
    "FlowCallback",
    "LoggingCallback",
    "RichProgressCallback",
    "resolve_dag",
    "DebugLog",
    "NodeExecutor",
    "NodeResult",
    "FlowOrchestrator",
    "FlowRunResult",
    "run_simulated_flow",
    "sanitize_output",
    "PROMPT_BUILDERS",
    "PromptContext",
    "build_prompt",
    "PROVIDER_CATALOG",
    "ValidationResult",
    "validate_adapter_implementations",
    "validate_before_execution",
    "validate_configuration_compatibility",
    "validate_flow_node_config",
    "validate_model_system",
    "validate_registry_consistency",
]
