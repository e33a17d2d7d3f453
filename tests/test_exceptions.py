"""Tests for the custom exception hierarchy."""

import pytest
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


class TestExceptionHierarchy:
    def test_all_inherit_from_agent_flow_error(self):
        leaf_classes = [
            GraphStructureError, CycleDetectedError, UnreachableNodesError,
            ConfigurationError, MissingAdapterError, InvalidNodeConfigError,
            ProviderError, AuthenticationError,
            ParsingError,
            WorkflowError, FlowAlreadyRunningError,
        ]
        for cls in leaf_classes:
            assert issubclass(cls, AgentFlowError), f"{cls.__name__} must inherit AgentFlowError"

    def test_graph_subclasses(self):
        assert issubclass(CycleDetectedError, GraphStructureError)
        assert issubclass(UnreachableNodesError, GraphStructureError)

    def test_configuration_subclasses(self):
        assert issubclass(MissingAdapterError, ConfigurationError)
        assert issubclass(InvalidNodeConfigError, ConfigurationError)

    def test_authentication_is_provider_error(self):
        assert issubclass(AuthenticationError, ProviderError)

    def test_workflow_subclasses(self):
        assert issubclass(FlowAlreadyRunningError, WorkflowError)


class TestExceptionCreation:
    def test_basic_message(self):
        err = AgentFlowError("something broke")
        assert err.message == "something broke"
        assert err.details == {}
        assert str(err) == "something broke"

    def test_details_rendered_in_str(self):
        err = AgentFlowError("bad", {"node_id": "n1"})
        assert str(err) == "bad (node_id=n1)"

    def test_cycle_names_first_member(self):
        err = CycleDetectedError(["A", "B"])
        assert err.node_ids == ["A", "B"]
        assert "node A is part of a circular dependency" in err.message

    def test_unreachable_lists_all_nodes(self):
        err = UnreachableNodesError(["C", "D"])
        assert err.message == "Unreachable nodes detected: C, D"

    def test_missing_adapter_names_model(self):
        err = MissingAdapterError("gpt-99")
        assert err.model_id == "gpt-99"
        assert err.message == "Missing adapter for model: gpt-99"

    def test_invalid_config_lists_every_problem(self):
        err = InvalidNodeConfigError(["temperature: too high", "maxTokens: not int"], node_id="n1")
        assert err.errors == ["temperature: too high", "maxTokens: not int"]
        assert "temperature: too high, maxTokens: not int" in err.message
        assert err.details == {"node_id": "n1"}

    def test_provider_error_keeps_status(self):
        err = ProviderError("quota exceeded", status=429)
        assert err.status == 429
        assert err.message == "quota exceeded"
        assert err.details["status"] == 429

    def test_provider_error_default_message(self):
        assert ProviderError().message == "Unknown API error"

    def test_authentication_error_instructs_sign_in(self):
        err = AuthenticationError()
        assert err.status == 401
        assert "sign in" in err.message

    def test_parsing_error_truncates_raw_output_in_details(self):
        err = ParsingError("no json", "x" * 500)
        assert err.raw_output == "x" * 500
        assert len(err.details["raw_output"]) == 200

    def test_can_be_raised_and_caught_as_base(self):
        with pytest.raises(AgentFlowError):
            raise MissingAdapterError("nope")
