"""Tests for level-by-level flow orchestration."""

import asyncio
import json

import pytest


class ScriptedExecutor:
    """Executor stand-in that records calls and returns canned results."""

    def __init__(self, delay=0.0, memories=None, failures=None):
        self.delay = delay
        self.memories = memories or {}
        self.failures = failures or {}
        self.events = []
        self.calls = {}

    async def execute(self, node, inputs=None, memory=None, run_settings=None, upstream=None):
        from workflow.executor import NodeResult
        self.events.append(("start", node.id))
        self.calls[node.id] = {"inputs": inputs, "memory": memory, "upstream": upstream}
        await asyncio.sleep(self.delay)
        self.events.append(("end", node.id))
        if node.id in self.failures:
            raise self.failures[node.id]
        return NodeResult(output=f"{node.id}-out", memory=self.memories.get(node.id))


class RecordingCallback:
    def __init__(self):
        self.levels = []
        self.completed = []
        self.errors = []
        self.finished = []

    def on_level_start(self, level, nodes):
        self.levels.append((level, [n.id for n in nodes]))

    def on_node_complete(self, output):
        self.completed.append(output.node_id)

    def on_error(self, node_id, error):
        self.errors.append((node_id, error))

    def on_run_complete(self, status, outputs):
        self.finished.append((status, len(outputs)))


def _orchestrator(registry, settings, executor, callback=None):
    from workflow.orchestrator import FlowOrchestrator
    return FlowOrchestrator(registry, settings=settings, executor=executor, callback=callback)


class TestChainRun:
    @pytest.mark.asyncio
    async def test_prompt_flows_through_mock_chain(self, orchestrator, chain_graph_dict):
        from models.enums import RunStatus
        from models.flow import FlowGraph
        result = await orchestrator.run(FlowGraph.from_dict(chain_graph_dict))

        assert result.status == RunStatus.COMPLETED
        assert result.succeeded
        assert [o.node_id for o in result.outputs] == ["Input", "Process", "Generate"]
        assert result.context["Input"] == "hello"
        assert result.context["Process"] == "[Mock response for node Process: hello]"
        assert result.context["Generate"] == (
            "[Mock response for node Generate: [Mock response for node Process: hello]]"
        )
        assert orchestrator.status == RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_record_inputs(self, orchestrator, chain_graph_dict):
        from models.flow import FlowGraph
        result = await orchestrator.run(FlowGraph.from_dict(chain_graph_dict))
        assert result.output_for("Input").input is None
        assert result.output_for("Process").input == "hello"
        assert result.output_for("Process").node_name == "Process"

    @pytest.mark.asyncio
    async def test_multiple_inputs_recorded_as_list(self, orchestrator, make_node):
        nodes = [make_node("a"), make_node("b"), make_node("c", ["a", "b"])]
        result = await orchestrator.run(nodes)
        assert result.output_for("c").input == [result.context["a"], result.context["b"]]

    @pytest.mark.asyncio
    async def test_node_status_updated(self, orchestrator, make_node):
        from models.enums import NodeStatus
        nodes = [make_node("a"), make_node("b", ["a"])]
        await orchestrator.run(nodes)
        assert all(n.status == NodeStatus.COMPLETED for n in nodes)
        assert nodes[1].output.startswith("[Mock response for node b:")

    @pytest.mark.asyncio
    async def test_accepts_run_settings_dict(self, orchestrator, novel_graph_dict):
        from models.enums import RunStatus
        from models.flow import FlowGraph
        result = await orchestrator.run(FlowGraph.from_dict(novel_graph_dict), {"flowMode": "novel"})

        assert result.status == RunStatus.COMPLETED
        assert len(result.outputs) == 5
        assert not any(o.is_error for o in result.outputs)
        assert "fullOutline" in result.memories["outline"].model_extra
        assert result.context["ch1"].startswith("[Mock response for node ch1: You are writing Chapter 1")
        assert "Summarize the following novel chapter" in result.context["sum1"]


class TestLevelScheduling:
    @pytest.mark.asyncio
    async def test_levels_run_in_order_and_concurrently(self, registry, settings, make_node):
        executor = ScriptedExecutor(delay=0.01)
        callback = RecordingCallback()
        nodes = [make_node("a"), make_node("b"), make_node("c", ["a", "b"])]
        await _orchestrator(registry, settings, executor, callback).run(nodes, validate=False)

        events = executor.events
        # both roots start before either finishes
        assert events[:2] == [("start", "a"), ("start", "b")]
        # c only starts once both roots are done
        assert events.index(("start", "c")) > max(events.index(("end", "a")), events.index(("end", "b")))
        assert callback.levels == [(0, ["a", "b"]), (1, ["c"])]

    @pytest.mark.asyncio
    async def test_inputs_follow_input_order(self, registry, settings, make_node):
        executor = ScriptedExecutor()
        nodes = [make_node("a"), make_node("b"), make_node("c", ["b", "a"])]
        await _orchestrator(registry, settings, executor).run(nodes, validate=False)
        assert executor.calls["c"]["inputs"] == ["b-out", "a-out"]
        assert [n.id for n in executor.calls["c"]["upstream"]] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_predecessor_memories_merged(self, registry, settings, make_node):
        from models.memory import NarrativeMemory
        executor = ScriptedExecutor(memories={
            "a": NarrativeMemory(emotional_tone="calm"),
            "b": NarrativeMemory(world_state="burning"),
        })
        nodes = [make_node("a"), make_node("b"), make_node("c", ["a", "b"])]
        result = await _orchestrator(registry, settings, executor).run(nodes, validate=False)

        received = executor.calls["c"]["memory"]
        assert received.emotional_tone == "calm"
        assert received.world_state == "burning"
        # without a memory of its own, a node passes the merged one on
        assert result.memories["c"] == received

    @pytest.mark.asyncio
    async def test_root_gets_default_memory(self, registry, settings, make_node):
        from models.memory import default_memory
        executor = ScriptedExecutor()
        await _orchestrator(registry, settings, executor).run([make_node("a")], validate=False)
        assert executor.calls["a"]["memory"] == default_memory()


class TestErrorContainment:
    @pytest.mark.asyncio
    async def test_failed_node_text_flows_downstream(self, orchestrator, make_node):
        from models.enums import NodeStatus, RunStatus
        nodes = [make_node("bad", model_id="gpt-99"), make_node("next", ["bad"])]
        result = await orchestrator.run(nodes, validate=False)

        assert result.status == RunStatus.COMPLETED
        assert not result.succeeded
        bad = result.output_for("bad")
        assert bad.node_type == "error"
        assert bad.output == "Error: Missing adapter for model: gpt-99"
        assert result.context["next"] == "[Mock response for node next: Error: Missing adapter for model: gpt-99]"
        assert nodes[0].status == NodeStatus.ERROR
        assert result.errors == ["bad: Error: Missing adapter for model: gpt-99"]

    @pytest.mark.asyncio
    async def test_sibling_survives_provider_failure(self, orchestrator, execute_model, make_node):
        from config.exceptions import ProviderError
        execute_model.side_effect = ProviderError("Rate limited", status=429)
        nodes = [make_node("real", model_id="gpt-4o"), make_node("mock")]
        result = await orchestrator.run(nodes)

        assert result.output_for("real").output == "Error: Rate limited"
        assert not result.output_for("mock").is_error

    @pytest.mark.asyncio
    async def test_failed_node_memory_is_default(self, registry, settings, make_node):
        from models.memory import default_memory
        executor = ScriptedExecutor(failures={"a": RuntimeError("boom")})
        callback = RecordingCallback()
        result = await _orchestrator(registry, settings, executor, callback).run(
            [make_node("a"), make_node("b", ["a"])], validate=False,
        )
        assert result.memories["a"] == default_memory()
        assert executor.calls["b"]["inputs"] == ["Error: boom"]
        assert callback.errors == [("a", "Error: boom")]
        assert callback.completed == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_without_message_uses_type_name(self, registry, settings, make_node):
        executor = ScriptedExecutor(failures={"a": KeyError()})
        result = await _orchestrator(registry, settings, executor).run([make_node("a")], validate=False)
        assert result.context["a"] == "Error: KeyError"


class TestRunFailures:
    @pytest.mark.asyncio
    async def test_validation_failure_stops_run(self, orchestrator, execute_model, make_node):
        from models.enums import RunStatus
        callback = RecordingCallback()
        orchestrator.callback = callback
        nodes = [make_node("w", model_id="gpt-4o", config={"temperature": "hot"}), make_node("ok")]
        result = await orchestrator.run(nodes)

        assert result.status == RunStatus.FAILED
        assert len(result.outputs) == 1
        record = result.outputs[0]
        assert record.node_id == "w"
        assert record.node_type == "error"
        assert record.output.startswith('Validation Error: Invalid type for key "temperature"')
        assert result.context == {}
        execute_model.assert_not_awaited()
        assert callback.finished == [("failed", 1)]

    @pytest.mark.asyncio
    async def test_unknown_model_fails_validation(self, orchestrator, make_node):
        from models.enums import RunStatus
        result = await orchestrator.run([make_node("x", model_id="gpt-99")])
        assert result.status == RunStatus.FAILED
        assert result.outputs[0].output == 'Validation Error: Flow node has invalid modelId: "gpt-99"'

    @pytest.mark.asyncio
    async def test_cycle_reported_by_flow_engine(self, orchestrator, make_node):
        from models.enums import RunStatus
        result = await orchestrator.run([make_node("A", ["B"]), make_node("B", ["A"])])

        assert result.status == RunStatus.FAILED
        assert orchestrator.status == RunStatus.FAILED
        assert len(result.outputs) == 1
        record = result.outputs[0]
        assert record.node_id == "error"
        assert record.node_name == "Flow Engine"
        assert record.output.startswith("Flow Error: Cycle detected in flow")

    @pytest.mark.asyncio
    async def test_unreachable_reported(self, orchestrator, make_node):
        result = await orchestrator.run([make_node("A"), make_node("C", ["ghost"])])
        assert result.outputs[0].output == "Flow Error: Unreachable nodes detected: C"

    @pytest.mark.asyncio
    async def test_second_run_while_live_rejected(self, registry, settings, make_node):
        from config.exceptions import FlowAlreadyRunningError
        from models.enums import RunStatus

        gate = asyncio.Event()

        class GatedExecutor(ScriptedExecutor):
            async def execute(self, node, *args, **kwargs):
                await gate.wait()
                return await super().execute(node, *args, **kwargs)

        orchestrator = _orchestrator(registry, settings, GatedExecutor())
        task = asyncio.create_task(orchestrator.run([make_node("a")], validate=False))
        for _ in range(5):
            await asyncio.sleep(0)
        assert orchestrator.is_running

        with pytest.raises(FlowAlreadyRunningError):
            await orchestrator.run([make_node("b")])

        gate.set()
        result = await task
        assert result.status == RunStatus.COMPLETED
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_can_run_again_after_completion(self, orchestrator, make_node):
        from models.enums import RunStatus
        await orchestrator.run([make_node("a")])
        result = await orchestrator.run([make_node("b")])
        assert result.status == RunStatus.COMPLETED


class TestSanitizeOutput:
    def test_string(self):
        from workflow.orchestrator import sanitize_output
        assert sanitize_output("text") == "text"

    def test_output_field(self):
        from workflow.orchestrator import sanitize_output
        assert sanitize_output({"output": "text"}) == "text"

    def test_nested_output_field(self):
        from workflow.orchestrator import sanitize_output
        assert sanitize_output({"output": {"output": "text"}}) == "text"

    def test_node_result(self):
        from workflow.executor import NodeResult
        from workflow.orchestrator import sanitize_output
        assert sanitize_output(NodeResult(output="text")) == "text"

    def test_unexpected_shape(self):
        from workflow.orchestrator import UNEXPECTED_OUTPUT, sanitize_output
        assert sanitize_output({"output": 5}) == UNEXPECTED_OUTPUT
        assert sanitize_output(None) == UNEXPECTED_OUTPUT


class TestSimulatedFlow:
    def test_chain_with_seeded_input(self, make_node):
        from models.enums import RunStatus
        from workflow.orchestrator import run_simulated_flow
        result = run_simulated_flow([make_node("B", ["A"]), make_node("C", ["B"])], {"A": "seed"})

        assert result.status == RunStatus.COMPLETED
        assert result.context["B"] == '[Simulated output for: ["seed"]]'
        assert result.context["C"] == "[Simulated output for: " + json.dumps([result.context["B"]]) + "]"
        assert [o.node_id for o in result.outputs] == ["B", "C"]

    def test_root_receives_empty_input(self, make_node):
        from workflow.orchestrator import run_simulated_flow
        result = run_simulated_flow([make_node("A")])
        assert result.context["A"] == "[Simulated output for: []]"

    def test_cycle_yields_flow_engine_record(self, make_node):
        from models.enums import RunStatus
        from workflow.orchestrator import run_simulated_flow
        result = run_simulated_flow([make_node("A", ["B"]), make_node("B", ["A"])])

        assert result.status == RunStatus.FAILED
        assert len(result.outputs) == 1
        assert result.outputs[0].node_name == "Flow Engine"
        assert result.outputs[0].output.startswith("Error: Cycle detected")

    def test_unseeded_missing_input_is_unreachable(self, make_node):
        from models.enums import RunStatus
        from workflow.orchestrator import run_simulated_flow
        result = run_simulated_flow([make_node("B", ["A"])])
        assert result.status == RunStatus.FAILED
        assert "Unreachable nodes detected: B" in result.outputs[0].output
