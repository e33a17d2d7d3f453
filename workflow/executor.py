"""Single-node execution.

``NodeExecutor.execute`` turns one node plus its upstream values into an
output (and, in novel mode, an updated narrative memory). It performs
at most one model call, through the injected ``execute_model``
collaborator, and appends exactly one DebugRecord per execution.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional

from adapters.base import ModelAdapter, ParsedResponse
from adapters.limits import model_token_limit
from adapters.perplexity_adapter import PERPLEXITY_MODELS, PerplexityAdapter
from adapters.registry import AdapterRegistry
from config.exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidNodeConfigError,
    MissingAdapterError,
    ParsingError,
    ProviderError,
)
from config.settings import RunSettings, Settings, get_settings
from models.debug import DebugRecord
from models.enums import NodeKind
from models.flow import FlowNode
from models.memory import NarrativeMemory
from tools.json_parsing import parse_json_object
from tools.model_client import NO_SESSION
from tools.outline_parser import extract_outline_from_model_output, is_parse_failure
from tools.text_utils import flatten_input, truncate
from workflow.debug_log import DebugLog
from workflow.prompts import PromptContext, build_prompt
from workflow.validation import validate_flow_node_config

logger = logging.getLogger(__name__)

ExecuteModel = Callable[[str, str, dict], Awaitable[Any]]


@dataclass
class NodeResult:
    """What one node execution produced."""
    output: str
    memory: Optional[NarrativeMemory] = None
    debug_prompt: str = ""
    parsed: Optional[ParsedResponse] = None


@dataclass
class _Trace:
    """Mutable notes for the debug record of one execution."""
    node_id: str
    model_id: str
    prompt: str = ""
    raw: Any = None
    parsed: Any = None
    duration_ms: int = 0

    def record(self, error: Optional[str] = None) -> DebugRecord:
        raw = self.raw
        if raw is not None and not isinstance(raw, str):
            raw = json.dumps(raw, ensure_ascii=False, default=str)
        return DebugRecord(
            node_id=self.node_id,
            model_id=self.model_id,
            prompt=self.prompt,
            raw_output=raw or "",
            parsed_output=self.parsed,
            duration_ms=self.duration_ms,
            error=error,
        )


class NodeExecutor:
    """Executes individual flow nodes against their model adapters."""

    def __init__(
        self,
        registry: AdapterRegistry,
        execute_model: Optional[ExecuteModel] = None,
        debug_log: Optional[DebugLog] = None,
        settings: Optional[Settings] = None,
    ):
        self.registry = registry
        self.execute_model = execute_model
        self.debug_log = debug_log if debug_log is not None else DebugLog()
        self.settings = settings or get_settings()

    async def execute(
        self,
        node: FlowNode,
        inputs: Optional[list[Any]] = None,
        memory: Optional[NarrativeMemory] = None,
        run_settings: Optional[RunSettings] = None,
        upstream: Optional[list[Optional[FlowNode]]] = None,
    ) -> NodeResult:
        """Execute ``node`` with its resolved upstream values.

        Args:
            node: The node to run.
            inputs: Upstream outputs, in the order of ``node.input_node_ids``.
            memory: Narrative memory merged from the node's predecessors.
            run_settings: Flow mode and per-kind token budgets for this run.
            upstream: Upstream nodes aligned with ``inputs`` (novel mode uses
                them to locate outline nodes).

        Raises:
            ConfigurationError: Missing model id, adapter or invalid config.
            ProviderError: The model call failed or returned nothing.
        """
        inputs = list(inputs or [])
        memory = memory if memory is not None else NarrativeMemory()
        run_settings = run_settings or RunSettings(flow_mode=self.settings.flow_mode)
        trace = _Trace(node_id=node.id, model_id=node.model_id or "")

        try:
            if node.is_prompt_source:
                result = self._prompt_source(node, trace)
            elif run_settings.is_novel:
                result = await self._execute_novel(node, inputs, memory, run_settings, upstream or [], trace)
            else:
                result = await self._execute_plain(node, inputs, trace)
        except Exception as e:
            self.debug_log.append(trace.record(error=str(e)))
            raise

        self.debug_log.append(trace.record())
        return result

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _prompt_source(self, node: FlowNode, trace: _Trace) -> NodeResult:
        prompt = node.prompt or ""
        logger.debug("Input prompt node %s: %s", node.id, truncate(prompt, 100))
        trace.prompt = prompt
        trace.parsed = prompt
        return NodeResult(output=prompt, debug_prompt=prompt)

    def _adapter_for(self, node: FlowNode) -> ModelAdapter:
        if not node.model_id:
            raise ConfigurationError(f"Node {node.id} has no modelId", {"node_id": node.id})
        adapter = self.registry.get(node.model_id)
        if adapter is None:
            logger.error(
                "No adapter for model %s; available: %s",
                node.model_id, ", ".join(self.registry),
            )
            raise MissingAdapterError(node.model_id)
        return adapter

    def _checked_config(self, node: FlowNode, config: dict) -> dict:
        result = validate_flow_node_config(self.registry, node.model_id, config)
        if not result.is_valid:
            raise InvalidNodeConfigError(result.errors, node_id=node.id)
        return config

    def _is_mock(self, node: FlowNode) -> bool:
        return node.model_id == self.settings.mock_model_id

    async def _complete(
        self,
        node: FlowNode,
        adapter: ModelAdapter,
        prompt: str,
        config: dict,
        trace: _Trace,
    ) -> ParsedResponse:
        """Run one model call (or its mock short-circuit) and parse the result."""
        trace.prompt = prompt

        if self._is_mock(node):
            output = f"[Mock response for node {node.id}: {prompt}]"
            logger.debug("Mock model for node %s", node.id)
            trace.raw = output
            parsed = ParsedResponse(output=output, raw=output)
            trace.parsed = parsed.to_dict()
            return parsed

        if self.execute_model is None:
            raise ConfigurationError("No model executor configured for real model calls")

        request = adapter.build_request(prompt, config)
        logger.debug(
            "Calling %s/%s for node %s with config %s",
            adapter.provider_name, node.model_id, node.id, json.dumps(config, default=str),
        )
        start = time.perf_counter()
        response = await self.execute_model(adapter.provider_name, node.model_id, request)
        trace.duration_ms = int((time.perf_counter() - start) * 1000)
        trace.raw = response

        if not response:
            raise ProviderError("Empty response from API")
        if isinstance(response, dict) and response.get("error"):
            message = response.get("message") or "Unknown API error"
            status = response.get("status")
            logger.error("API error for node %s (status=%s): %s", node.id, status, message)
            details = response.get("details")
            if status == 401 and isinstance(details, dict) and details.get("reason") == NO_SESSION:
                raise AuthenticationError(message)
            raise ProviderError(message, status=status)

        parsed = adapter.parse_response(response)
        trace.parsed = parsed.to_dict()
        logger.debug("Node %s output: %s", node.id, truncate(parsed.output))
        return parsed

    # ------------------------------------------------------------------
    # Plain mode
    # ------------------------------------------------------------------

    async def _execute_plain(self, node: FlowNode, inputs: list[Any], trace: _Trace) -> NodeResult:
        adapter = self._adapter_for(node)

        config = {**adapter.get_default_config()}
        if isinstance(adapter, PerplexityAdapter) and node.model_id in PERPLEXITY_MODELS:
            config.update(adapter.search_config())
        config = self._checked_config(node, {**config, **node.config})

        text = flatten_input(inputs)
        parsed = await self._complete(node, adapter, text, config, trace)
        return NodeResult(output=parsed.output, debug_prompt=text, parsed=parsed)

    # ------------------------------------------------------------------
    # Novel mode
    # ------------------------------------------------------------------

    def _max_tokens(self, node: FlowNode, run_settings: RunSettings) -> int:
        kind = node.node_kind or ""
        budget = (
            run_settings.max_tokens.get(kind)
            or self.settings.default_max_tokens_by_kind.get(kind)
            or self.settings.default_node_kind_max_tokens
        )
        ceiling = model_token_limit(node.model_id, self.settings.fallback_model_token_limit)
        return min(budget, ceiling)

    async def _execute_novel(
        self,
        node: FlowNode,
        inputs: list[Any],
        memory: NarrativeMemory,
        run_settings: RunSettings,
        upstream: list[Optional[FlowNode]],
        trace: _Trace,
    ) -> NodeResult:
        adapter = self._adapter_for(node)
        kind = node.node_kind or ""
        max_tokens = self._max_tokens(node, run_settings)

        config = {**adapter.get_default_config(), **node.config, "maxTokens": max_tokens}
        config = self._checked_config(node, config)

        ctx = PromptContext(node=node, inputs=inputs, memory=memory, upstream=upstream)
        prompt = build_prompt(kind, ctx)
        logger.info("Novel node %s (kind=%s, maxTokens=%d)", node.id, kind or "-", max_tokens)
        parsed = await self._complete(node, adapter, prompt, config, trace)

        if kind == NodeKind.OUTLINE.value:
            outline = extract_outline_from_model_output(parsed.output)
            if is_parse_failure(outline):
                logger.warning("Outline node %s produced no usable outline: %s", node.id, outline[0]["summary"])
            carried = NarrativeMemory.from_dict({**memory.to_dict(), "fullOutline": outline})
            return NodeResult(
                output=json.dumps(outline, ensure_ascii=False, indent=2),
                memory=carried,
                debug_prompt=prompt,
                parsed=parsed,
            )

        if kind == NodeKind.RETROINJECT.value:
            return NodeResult(
                output=parsed.output,
                memory=self._memory_from_output(node, parsed.output),
                debug_prompt=prompt,
                parsed=parsed,
            )

        return NodeResult(
            output=parsed.output,
            memory=NarrativeMemory.from_dict(memory.to_dict()),
            debug_prompt=prompt,
            parsed=parsed,
        )

    @staticmethod
    def _memory_from_output(node: FlowNode, output: str) -> NarrativeMemory:
        """Narrative memory parsed from model JSON, or defaults carrying the raw text."""
        try:
            data = parse_json_object(output)
        except ParsingError as e:
            logger.warning("Memory parsing failed for node %s, applying fallback: %s", node.id, e.message)
            return NarrativeMemory.from_dict(None, fallback=output)

        if not data.get("characterArcs"):
            logger.warning("Memory structure incomplete for node %s", node.id)
            return NarrativeMemory.from_dict(data, fallback=output)
        return NarrativeMemory.from_dict(data)
