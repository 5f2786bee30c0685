"""Tests for available-parameter inference on formatter nodes."""
from __future__ import annotations

from hookmap.domain.dataflow import (
    AVAILABLE_PARAMS_KEY,
    MISSING,
    affected_targets,
    compute_available_params,
    infer_type,
    params_changed,
    refresh_all_available_params,
    refresh_available_params,
)


def _graph():
    nodes = [
        {"id": "A", "type": "X", "position": {"x": 0, "y": 0}, "data": {"value": 42, "label": "hi"}},
        {"id": "F", "type": "Formatter", "position": {"x": 0, "y": 0}, "data": {"template": ""}},
        {"id": "W", "type": "Webhook", "position": {"x": 0, "y": 0}, "data": {}},
    ]
    edges = [{"id": "e1", "source": "A", "sourceHandle": "value", "target": "F", "targetHandle": "in"}]
    return nodes, edges


def _node(nodes, node_id):
    return next(n for n in nodes if n["id"] == node_id)


class TestInferType:
    """Test the runtime type names."""

    def test_type_names(self):
        assert infer_type(42) == "number"
        assert infer_type(1.5) == "number"
        assert infer_type(True) == "boolean"
        assert infer_type("x") == "string"
        assert infer_type([1]) == "array"
        assert infer_type({"a": 1}) == "object"
        assert infer_type(None) == "null"
        assert infer_type(MISSING) == "undefined"
        assert infer_type(len) == "function"


class TestComputeAvailableParams:
    """Test parameter derivation from incoming edges."""

    def test_single_edge(self):
        """Test a formatter fed by X.value sees one number parameter."""
        nodes, edges = _graph()
        params = compute_available_params("F", nodes, edges)

        assert params == [{"name": "value", "type": "number", "src": "X", "nodeId": "A", "preview": 42}]

    def test_missing_source_handle_defaults_to_value(self):
        nodes, edges = _graph()
        edges[0]["sourceHandle"] = None

        assert compute_available_params("F", nodes, edges)[0]["name"] == "value"

    def test_missing_data_key_is_undefined(self):
        nodes, edges = _graph()
        edges[0]["sourceHandle"] = "nothing"
        param = compute_available_params("F", nodes, edges)[0]

        assert param["type"] == "undefined"
        assert param["preview"] is None

    def test_unknown_source_node(self):
        nodes, edges = _graph()
        edges[0]["source"] = "ghost"
        param = compute_available_params("F", nodes, edges)[0]

        assert param["src"] == "unknown"
        assert param["nodeId"] == "ghost"

    def test_edge_order_is_kept(self):
        nodes, edges = _graph()
        edges.append({"id": "e2", "source": "A", "sourceHandle": "label", "target": "F", "targetHandle": "in"})

        assert [p["name"] for p in compute_available_params("F", nodes, edges)] == ["value", "label"]


class TestRefreshAvailableParams:
    """Test write-back onto formatter nodes."""

    def test_writes_params_on_formatter(self, registry):
        nodes, edges = _graph()
        updated = refresh_available_params(nodes, edges, {"F"}, registry)

        assert updated == {"F"}
        assert _node(nodes, "F")["data"][AVAILABLE_PARAMS_KEY][0]["preview"] == 42
        assert _node(nodes, "F")["data"]["template"] == ""

    def test_cleared_on_edge_removal(self, registry):
        """Test removing the only incoming edge empties the list."""
        nodes, edges = _graph()
        refresh_available_params(nodes, edges, {"F"}, registry)

        updated = refresh_available_params(nodes, [], {"F"}, registry)
        assert updated == {"F"}
        assert _node(nodes, "F")["data"][AVAILABLE_PARAMS_KEY] == []

    def test_non_formatter_targets_untouched(self, registry):
        nodes, edges = _graph()
        edges.append({"id": "e2", "source": "A", "sourceHandle": "value", "target": "W", "targetHandle": "in"})

        assert refresh_available_params(nodes, edges, {"W"}, registry) == set()
        assert AVAILABLE_PARAMS_KEY not in _node(nodes, "W")["data"]

    def test_unchanged_identity_leaves_node_alone(self, registry):
        """Test a preview-only difference does not rewrite the node."""
        nodes, edges = _graph()
        refresh_available_params(nodes, edges, {"F"}, registry)
        before = _node(nodes, "F")
        _node(nodes, "A")["data"]["value"] = 7

        assert refresh_available_params(nodes, edges, {"F"}, registry) == set()
        assert _node(nodes, "F") is before

    def test_does_not_mutate_replaced_node(self, registry):
        nodes, edges = _graph()
        original = nodes[1]
        refresh_available_params(nodes, edges, {"F"}, registry)

        assert AVAILABLE_PARAMS_KEY not in original["data"]

    def test_full_pass(self, registry):
        nodes, edges = _graph()
        assert refresh_all_available_params(nodes, edges, registry) == {"F"}

    def test_empty_targets(self, registry):
        nodes, edges = _graph()
        assert refresh_available_params(nodes, edges, set(), registry) == set()


class TestHelpers:
    def test_params_changed_on_identity_fields(self):
        old = [{"name": "value", "type": "number", "src": "X", "nodeId": "A", "preview": 1}]
        same = [{"name": "value", "type": "number", "src": "X", "nodeId": "A", "preview": 2}]
        other = [{"name": "value", "type": "string", "src": "X", "nodeId": "A", "preview": "2"}]

        assert not params_changed(old, same)
        assert params_changed(old, other)
        assert params_changed(None, same)
        assert not params_changed(None, [])

    def test_affected_targets(self):
        added = [{"target": "F"}]
        removed = [{"target": "W"}, None]

        assert affected_targets(added, removed) == {"F", "W"}
