"""Tests for flow graph data models."""


class TestFlowNode:
    def test_from_dict_camel_case(self):
        from models.flow import FlowNode
        node = FlowNode.from_dict({
            "id": "n1",
            "type": "model",
            "modelId": "gpt-4o",
            "inputNodeIds": ["a", "b"],
            "nodeKind": "chapter",
            "config": {"label": "Chapter 2"},
        })
        assert node.model_id == "gpt-4o"
        assert node.input_node_ids == ["a", "b"]
        assert node.node_kind == "chapter"
        assert node.label == "Chapter 2"

    def test_defaults(self):
        from models.enums import NodeStatus
        from models.flow import FlowNode
        node = FlowNode.from_dict({"id": 7})
        assert node.id == "7"
        assert node.type == "model"
        assert node.input_node_ids == []
        assert node.status == NodeStatus.IDLE
        assert node.label == "Node 7"

    def test_prompt_source(self):
        from models.flow import FlowNode
        node = FlowNode.from_dict({"id": "p", "type": "inputPrompt", "prompt": "hello"})
        assert node.is_prompt_source
        assert node.prompt == "hello"

    def test_top_level_label_moves_into_config(self):
        from models.flow import FlowNode
        assert FlowNode.from_dict({"id": "x", "label": "Writer"}).label == "Writer"


class TestFlowGraph:
    def test_edges_fold_into_inputs(self, chain_graph_dict):
        from models.flow import FlowGraph
        nodes = {n.id: n for n in FlowGraph.from_dict(chain_graph_dict).to_flow_nodes()}
        assert nodes["Input"].input_node_ids == []
        assert nodes["Process"].input_node_ids == ["Input"]
        assert nodes["Generate"].input_node_ids == ["Process"]

    def test_duplicate_sources_dropped(self):
        from models.flow import FlowGraph
        graph = FlowGraph.from_dict({
            "nodes": [{"id": "a"}, {"id": "b", "inputNodeIds": ["a"]}],
            "edges": [{"source": "a", "target": "b"}],
        })
        assert graph.to_flow_nodes()[1].input_node_ids == ["a"]

    def test_to_flow_nodes_returns_copies(self, chain_graph_dict):
        from models.flow import FlowGraph
        graph = FlowGraph.from_dict(chain_graph_dict)
        copies = graph.to_flow_nodes()
        copies[1].config["label"] = "changed"
        assert graph.nodes[1].config["label"] == "Process"

    def test_from_json_file(self, tmp_path, chain_graph_dict):
        import json
        from models.flow import FlowGraph
        path = tmp_path / "flow.json"
        path.write_text(json.dumps(chain_graph_dict), encoding="utf-8")
        graph = FlowGraph.from_json_file(path)
        assert [n.id for n in graph.nodes] == ["Input", "Process", "Generate"]
        assert len(graph.edges) == 2


class TestFlowOutput:
    def test_to_dict_camel_case(self):
        from models.flow import FlowOutput
        record = FlowOutput(
            node_id="n1", node_name="Writer", node_type="model",
            output="text", input="in", model_id="gpt-4o", execution_time=12,
        ).to_dict()
        assert record["nodeId"] == "n1"
        assert record["nodeName"] == "Writer"
        assert record["executionTime"] == 12
        assert record["modelId"] == "gpt-4o"
        assert "config" not in record

    def test_is_error(self):
        from models.flow import FlowOutput
        assert FlowOutput("n", "N", "error", "Error: x").is_error
        assert not FlowOutput("n", "N", "model", "ok").is_error

    def test_timestamp_is_utc_iso(self):
        from models.flow import FlowOutput
        assert FlowOutput("n", "N", "model", "ok").timestamp.endswith("Z")


class TestDebugRecord:
    def test_to_dict(self):
        from models.debug import DebugRecord
        data = DebugRecord(node_id="n", model_id="m", prompt="p", raw_output="r", duration_ms=5).to_dict()
        assert data["node_id"] == "n"
        assert data["duration_ms"] == 5
        assert data["error"] is None
