"""Shared pytest fixtures for the agentflow test suite."""

import pytest
from unittest.mock import AsyncMock


# ---------------------------------------------------------------------------
# Settings fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(_env_file=None, log_dir=tmp_path / "logs")


@pytest.fixture(autouse=True)
def _isolated_settings(settings):
    """Make get_settings() return the tmp_path settings for every test."""
    from config.settings import reset_settings
    reset_settings(settings)
    yield
    reset_settings()


@pytest.fixture
def novel_settings():
    from config.settings import RunSettings
    return RunSettings(flow_mode="novel")


# ---------------------------------------------------------------------------
# Registry / executor fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def registry():
    from adapters.registry import build_default_registry
    return build_default_registry()


@pytest.fixture
def debug_log():
    from workflow.debug_log import DebugLog
    return DebugLog()


def chat_response(text: str) -> dict:
    """A provider body in the normalized chat-completions shape."""
    return {
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
    }


@pytest.fixture
def execute_model():
    """AsyncMock standing in for ModelClient.execute."""
    return AsyncMock(return_value=chat_response("model says hi"))


@pytest.fixture
def executor(registry, execute_model, debug_log, settings):
    from workflow.executor import NodeExecutor
    return NodeExecutor(registry, execute_model, debug_log, settings)


@pytest.fixture
def orchestrator(registry, execute_model, debug_log, settings):
    from workflow.orchestrator import FlowOrchestrator
    return FlowOrchestrator(registry, execute_model, debug_log, settings)


# ---------------------------------------------------------------------------
# Graph fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_node():
    """Factory for FlowNode instances with sensible defaults."""
    from models.flow import FlowNode

    def _make(node_id, inputs=(), model_id="mock-model", **kwargs):
        return FlowNode(id=node_id, model_id=model_id, input_node_ids=list(inputs), **kwargs)

    return _make


@pytest.fixture
def chain_graph_dict():
    """Prompt -> Process -> Generate, as the flow editor exports it."""
    return {
        "nodes": [
            {"id": "Input", "type": "inputPrompt", "prompt": "hello", "config": {"label": "Input"}},
            {"id": "Process", "type": "model", "modelId": "mock-model", "config": {"label": "Process"}},
            {"id": "Generate", "type": "model", "modelId": "mock-model", "config": {"label": "Generate"}},
        ],
        "edges": [
            {"source": "Input", "target": "Process"},
            {"source": "Process", "target": "Generate"},
        ],
    }


@pytest.fixture
def novel_graph_dict():
    """Outline -> Chapter 1 -> Summary -> RetroInject, all on the mock model."""
    return {
        "nodes": [
            {"id": "premise", "type": "inputPrompt", "prompt": "A heist on a generation ship"},
            {"id": "outline", "modelId": "mock-model", "nodeKind": "outline",
             "config": {"label": "Outline", "systemPrompt": "Return a JSON outline."}},
            {"id": "ch1", "modelId": "mock-model", "nodeKind": "chapter", "config": {"label": "Chapter 1"}},
            {"id": "sum1", "modelId": "mock-model", "nodeKind": "summary"},
            {"id": "retro1", "modelId": "mock-model", "nodeKind": "retroinject"},
        ],
        "edges": [
            {"source": "premise", "target": "outline"},
            {"source": "outline", "target": "ch1"},
            {"source": "ch1", "target": "sum1"},
            {"source": "sum1", "target": "retro1"},
        ],
    }
