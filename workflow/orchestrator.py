"""Flow orchestration: validate, resolve levels, run each level concurrently.

A run moves IDLE -> VALIDATING -> RUNNING -> COMPLETED, or ends FAILED
when validation or dependency resolution rejects the graph. Failures of
individual nodes never abort the run: they become ``error`` records
whose text flows downstream like any other output.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from adapters.mock_adapter import MockAdapter
from adapters.registry import AdapterRegistry, get_registry
from config.exceptions import FlowAlreadyRunningError, GraphStructureError
from config.settings import RunSettings, Settings, get_settings
from models.enums import NodeStatus, NodeType, RunStatus
from models.flow import FlowGraph, FlowNode, FlowOutput
from models.memory import NarrativeMemory, default_memory, merge_narrative_memory
from workflow.callbacks import FlowCallback, LoggingCallback
from workflow.dag import resolve_dag
from workflow.debug_log import DebugLog
from workflow.executor import ExecuteModel, NodeExecutor
from workflow.validation import validate_before_execution

logger = logging.getLogger(__name__)

UNEXPECTED_OUTPUT = "[UNEXPECTED OUTPUT FORMAT]"
FLOW_ENGINE_NODE_ID = "error"
FLOW_ENGINE_NODE_NAME = "Flow Engine"


def sanitize_output(value: Any) -> str:
    """Reduce a node result to the text stored in the run context.

    Accepts a string, an object whose ``output`` is a string, or one whose
    ``output.output`` is a string; anything else becomes a marker string.
    """
    if isinstance(value, str):
        return value
    for _ in range(2):
        if isinstance(value, dict):
            value = value.get("output")
        elif value is not None and hasattr(value, "output"):
            value = value.output
        else:
            break
        if isinstance(value, str):
            return value
    return UNEXPECTED_OUTPUT


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


@dataclass
class FlowRunResult:
    """Outcome of one run."""
    status: RunStatus
    outputs: list[FlowOutput] = field(default_factory=list)
    context: dict[str, str] = field(default_factory=dict)
    memories: dict[str, NarrativeMemory] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED and not any(o.is_error for o in self.outputs)

    def output_for(self, node_id: str) -> Optional[FlowOutput]:
        return next((o for o in self.outputs if o.node_id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "outputs": [o.to_dict() for o in self.outputs],
            "context": dict(self.context),
            "memories": {node_id: m.to_dict() for node_id, m in self.memories.items()},
            "errors": list(self.errors),
        }


@dataclass
class _RunState:
    nodes_by_id: dict[str, FlowNode]
    run_settings: RunSettings
    context: dict[str, str] = field(default_factory=dict)
    memories: dict[str, NarrativeMemory] = field(default_factory=dict)
    outputs: list[FlowOutput] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class FlowOrchestrator:
    """Runs a flow graph level by level.

    One orchestrator runs one flow at a time; starting a second run while
    the first is live raises FlowAlreadyRunningError.
    """

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        execute_model: Optional[ExecuteModel] = None,
        debug_log: Optional[DebugLog] = None,
        settings: Optional[Settings] = None,
        callback: Optional[FlowCallback] = None,
        executor: Optional[NodeExecutor] = None,
    ):
        self.registry = registry if registry is not None else get_registry()
        self.settings = settings or get_settings()
        self.debug_log = debug_log if debug_log is not None else DebugLog()
        self.executor = executor or NodeExecutor(
            self.registry, execute_model, self.debug_log, self.settings,
        )
        self.callback = callback or LoggingCallback()
        self._status = RunStatus.IDLE

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status in (RunStatus.VALIDATING, RunStatus.RUNNING)

    async def run(
        self,
        graph: Union[FlowGraph, list[FlowNode]],
        run_settings: Union[RunSettings, dict, None] = None,
        validate: bool = True,
    ) -> FlowRunResult:
        """Execute every node of ``graph`` and collect the results.

        Args:
            graph: A FlowGraph (edges are folded into node inputs) or nodes.
            run_settings: Flow mode and token budgets; a dict with
                ``flowMode``/``maxTokens`` keys is accepted too.
            validate: Check every model-bound node's config before running.

        Raises:
            FlowAlreadyRunningError: A run on this orchestrator is still live.
        """
        if self.is_running:
            raise FlowAlreadyRunningError()

        nodes = graph.to_flow_nodes() if isinstance(graph, FlowGraph) else list(graph)
        if run_settings is None:
            run_settings = RunSettings(flow_mode=self.settings.flow_mode)
        elif isinstance(run_settings, dict):
            run_settings = RunSettings.model_validate(run_settings)

        state = _RunState(
            nodes_by_id={node.id: node for node in nodes},
            run_settings=run_settings,
        )
        logger.info(
            "Flow run started: %d nodes, mode=%s", len(nodes), run_settings.flow_mode,
        )

        self._status = RunStatus.VALIDATING
        try:
            if validate and not self._validate(nodes, state):
                return self._finish(state, RunStatus.FAILED)

            self._status = RunStatus.RUNNING
            try:
                levels = resolve_dag(nodes)
            except GraphStructureError as e:
                self._record_flow_error(state, e)
                return self._finish(state, RunStatus.FAILED)

            for index, level in enumerate(levels):
                self.callback.on_level_start(index, level)
                await asyncio.gather(*(self._run_node(node, state) for node in level))

            return self._finish(state, RunStatus.COMPLETED)
        finally:
            if self.is_running:
                # Cancelled or crashed outside node scope
                self._status = RunStatus.FAILED

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _validate(self, nodes: list[FlowNode], state: _RunState) -> bool:
        result = validate_before_execution(self.registry, nodes)
        if result.is_valid:
            return True
        for node_id, errors in result.node_errors.items():
            node = state.nodes_by_id.get(node_id)
            message = f"Validation Error: {', '.join(errors)}"
            state.errors.append(f"{node_id}: {message}")
            state.outputs.append(FlowOutput(
                node_id=node_id,
                node_name=node.label if node else node_id,
                node_type=NodeType.ERROR.value,
                output=message,
                model_id=node.model_id if node else None,
            ))
            if node is not None:
                node.status = NodeStatus.ERROR
            self.callback.on_error(node_id, message)
        return False

    def _record_flow_error(self, state: _RunState, error: GraphStructureError) -> None:
        message = f"Flow Error: {_error_message(error)}"
        logger.error("Flow aborted: %s", message)
        state.errors.append(message)
        state.outputs.append(FlowOutput(
            node_id=FLOW_ENGINE_NODE_ID,
            node_name=FLOW_ENGINE_NODE_NAME,
            node_type=NodeType.ERROR.value,
            output=message,
        ))
        self.callback.on_error(FLOW_ENGINE_NODE_ID, message)

    def _finish(self, state: _RunState, status: RunStatus) -> FlowRunResult:
        self._status = status
        logger.info(
            "Flow run %s: %d outputs, %d errors", status.value, len(state.outputs), len(state.errors),
        )
        self.callback.on_run_complete(status.value, list(state.outputs))
        return FlowRunResult(
            status=status,
            outputs=list(state.outputs),
            context=dict(state.context),
            memories=dict(state.memories),
            errors=list(state.errors),
        )

    async def _run_node(self, node: FlowNode, state: _RunState) -> None:
        """Execute one node, containing any failure to that node."""
        inputs = [state.context.get(i) for i in node.input_node_ids]
        upstream = [state.nodes_by_id.get(i) for i in node.input_node_ids]
        memory = merge_narrative_memory(
            *(state.memories.get(i, default_memory()) for i in node.input_node_ids)
        )
        record_input: Any = inputs[0] if len(inputs) == 1 else (inputs or None)

        node.status = NodeStatus.ACTIVE
        start = time.perf_counter()
        try:
            result = await self.executor.execute(node, inputs, memory, state.run_settings, upstream)
        except Exception as e:
            message = f"Error: {_error_message(e)}"
            logger.error("Node %s failed: %s", node.id, message)
            state.context[node.id] = message
            state.memories[node.id] = default_memory()
            state.errors.append(f"{node.id}: {message}")
            node.status = NodeStatus.ERROR
            node.output = message
            output = FlowOutput(
                node_id=node.id,
                node_name=node.label,
                node_type=NodeType.ERROR.value,
                output=message,
                input=record_input,
                model_id=node.model_id,
                execution_time=int((time.perf_counter() - start) * 1000),
                config=dict(node.config) or None,
            )
            self.callback.on_error(node.id, message)
        else:
            text = sanitize_output(result)
            state.context[node.id] = text
            state.memories[node.id] = result.memory or memory
            node.status = NodeStatus.COMPLETED
            node.output = text
            output = FlowOutput(
                node_id=node.id,
                node_name=node.label,
                node_type=node.type,
                output=text,
                input=record_input,
                model_id=node.model_id,
                execution_time=int((time.perf_counter() - start) * 1000),
                config=dict(node.config) or None,
            )

        state.outputs.append(output)
        self.callback.on_node_complete(output)


def run_simulated_flow(nodes: list[FlowNode], inputs: Optional[dict[str, Any]] = None) -> FlowRunResult:
    """Walk ``nodes`` level by level through the mock adapter, without any I/O.

    ``inputs`` seeds the context keyed by node id; seeded ids that are not
    part of ``nodes`` count as already satisfied. Node failures become
    error records, graph errors a single Flow Engine record.
    """
    seeded = dict(inputs or {})
    node_ids = {node.id for node in nodes}
    resolvable = [
        replace(node, input_node_ids=[i for i in node.input_node_ids if i in node_ids or i not in seeded])
        for node in nodes
    ]
    try:
        levels = resolve_dag(resolvable)
    except GraphStructureError as e:
        message = f"Error: {_error_message(e)}"
        logger.error("Simulated flow aborted: %s", message)
        return FlowRunResult(
            status=RunStatus.FAILED,
            outputs=[FlowOutput(
                node_id=FLOW_ENGINE_NODE_ID,
                node_name=FLOW_ENGINE_NODE_NAME,
                node_type=NodeType.ERROR.value,
                output=message,
            )],
            errors=[message],
        )

    adapter = MockAdapter()
    originals = {node.id: node for node in nodes}
    context: dict[str, Any] = dict(seeded)
    outputs: list[FlowOutput] = []
    for level in levels:
        for resolved in level:
            node = originals[resolved.id]
            start = time.perf_counter()
            input_data = [context.get(i) for i in node.input_node_ids]
            try:
                request = adapter.build_request(json.dumps(input_data, default=str), node.config)
                text = adapter.parse_response(request).output
                node_type = node.type
            except Exception as e:
                text = f"Error: {_error_message(e)}"
                node_type = NodeType.ERROR.value
                logger.error("Simulated node %s failed: %s", node.id, text)
            context[node.id] = text
            outputs.append(FlowOutput(
                node_id=node.id,
                node_name=node.label,
                node_type=node_type,
                output=text,
                input=input_data,
                model_id=node.model_id,
                execution_time=int((time.perf_counter() - start) * 1000),
            ))
    return FlowRunResult(status=RunStatus.COMPLETED, outputs=outputs, context=context)
