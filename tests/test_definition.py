"""Tests for the graph definition model."""
from __future__ import annotations

import copy

from hookmap.domain.definition import (
    content_equal,
    defs_equal,
    empty_definition,
    normalize_for_content,
    rehydrate,
    sanitize,
    strip_callables,
    validate_references,
)


def _hook(*args, **kwargs):
    return None


def _nodes():
    return [
        {
            "id": "a",
            "type": "ContractEvent",
            "position": {"x": 0, "y": 0},
            "data": {"address": "0x1", "onChange": _hook},
        },
        {
            "id": "b",
            "type": "Formatter",
            "position": {"x": 200, "y": 40},
            "data": {"template": "{{value}}", "nested": {"cb": _hook, "items": [1, _hook, {"f": _hook}]}},
        },
    ]


def _edges():
    return [{"id": "e1", "source": "a", "target": "b", "sourceHandle": "value", "targetHandle": "in"}]


def _contains_callable(value) -> bool:
    if callable(value):
        return True
    if isinstance(value, dict):
        return any(_contains_callable(v) for v in value.values())
    if isinstance(value, list):
        return any(_contains_callable(v) for v in value)
    return False


class TestSanitize:
    """Test stripping callables from live state."""

    def test_removes_callables_at_every_depth(self):
        """Test no callable survives, nested lists included."""
        safe = sanitize(_nodes(), _edges())

        assert not _contains_callable(safe)
        assert safe["nodes"][0]["data"] == {"address": "0x1"}
        assert safe["nodes"][1]["data"]["nested"] == {"items": [1, {}]}

    def test_preserves_other_fields_and_key_order(self):
        """Test non-callable fields survive in their original order."""
        safe = sanitize(_nodes(), _edges())

        assert list(safe["nodes"][1].keys()) == ["id", "type", "position", "data"]
        assert safe["nodes"][1]["position"] == {"x": 200, "y": 40}
        assert safe["edges"] == _edges()

    def test_does_not_mutate_inputs(self):
        """Test the live nodes keep their hooks."""
        nodes = _nodes()
        sanitize(nodes, _edges())

        assert nodes[0]["data"]["onChange"] is _hook

    def test_is_idempotent(self):
        """Test sanitizing twice gives the same result."""
        once = sanitize(_nodes(), _edges())
        twice = sanitize(once["nodes"], once["edges"])

        assert twice == once

    def test_missing_data_becomes_empty_mapping(self):
        """Test a node without data gets an empty data mapping."""
        safe = sanitize([{"id": "x", "type": "Filter"}], [])

        assert safe["nodes"][0]["data"] == {}

    def test_empty_input(self):
        assert sanitize() == empty_definition()

    def test_strip_callables_on_scalars(self):
        assert strip_callables(3) == 3
        assert strip_callables("x") == "x"


class TestRehydrate:
    """Test re-attaching the change hook."""

    def test_attaches_hook_to_every_node(self):
        """Test each node gets the on_change hook in its data."""
        definition = sanitize(_nodes(), _edges())
        live = rehydrate(definition, _hook)

        assert all(n["data"]["onChange"] is _hook for n in live["nodes"])
        assert live["edges"] == definition["edges"]

    def test_does_not_mutate_definition(self):
        """Test the persisted definition stays data-only."""
        definition = sanitize(_nodes(), _edges())
        before = copy.deepcopy(definition)
        rehydrate(definition, _hook)

        assert definition == before

    def test_round_trip_with_sanitize(self):
        """Test sanitize(rehydrate(d)) gives back d."""
        definition = sanitize(_nodes(), _edges())
        live = rehydrate(definition, _hook)

        assert sanitize(live["nodes"], live["edges"]) == definition

    def test_none_definition(self):
        assert rehydrate(None, _hook) == {"nodes": [], "edges": []}


class TestContentEqual:
    """Test content comparison of definitions."""

    def test_reflexive(self):
        definition = sanitize(_nodes(), _edges())
        assert content_equal(definition, definition)

    def test_position_only_change_is_equal(self):
        """Test moving a node does not change content."""
        a = sanitize(_nodes(), _edges())
        b = copy.deepcopy(a)
        b["nodes"][0]["position"] = {"x": 500, "y": 500}
        b["nodes"][0]["selected"] = True
        b["nodes"][0]["measured"] = {"width": 150, "height": 60}

        assert content_equal(a, b)
        assert not defs_equal(a, b)

    def test_data_change_is_not_equal(self):
        a = sanitize(_nodes(), _edges())
        b = copy.deepcopy(a)
        b["nodes"][0]["data"]["address"] = "0x2"

        assert not content_equal(a, b)

    def test_added_and_removed_node_is_not_equal(self):
        a = sanitize(_nodes(), _edges())
        added = copy.deepcopy(a)
        added["nodes"].append({"id": "c", "type": "Webhook", "position": {"x": 0, "y": 0}, "data": {}})
        removed = copy.deepcopy(a)
        removed["nodes"].pop()

        assert not content_equal(a, added)
        assert not content_equal(a, removed)

    def test_edge_change_is_not_equal(self):
        a = sanitize(_nodes(), _edges())
        b = copy.deepcopy(a)
        b["edges"] = []

        assert not content_equal(a, b)

    def test_order_sensitive(self):
        """Test the same nodes in a different order compare unequal."""
        a = sanitize(_nodes(), _edges())
        b = copy.deepcopy(a)
        b["nodes"].reverse()

        assert not content_equal(a, b)

    def test_data_key_order_is_not_significant(self):
        a = {"nodes": [{"id": "a", "type": "T", "data": {"x": 1, "y": 2}}], "edges": []}
        b = {"nodes": [{"id": "a", "type": "T", "data": {"y": 2, "x": 1}}], "edges": []}

        assert content_equal(a, b)

    def test_missing_fields_normalize_like_null(self):
        """Test absent type/handles equal explicit None and absent data equals {}."""
        a = {"nodes": [{"id": "a"}], "edges": [{"id": "e", "source": "a", "target": "a"}]}
        b = {
            "nodes": [{"id": "a", "type": None, "data": {}}],
            "edges": [{"id": "e", "source": "a", "target": "a", "type": None,
                       "sourceHandle": None, "targetHandle": None, "data": {}}],
        }

        assert content_equal(a, b)

    def test_handle_objects_flatten_to_id(self):
        a = {"nodes": [], "edges": [{"id": "e", "source": "a", "target": "b", "targetHandle": {"id": "in"}}]}
        b = {"nodes": [], "edges": [{"id": "e", "source": "a", "target": "b", "targetHandle": "in"}]}

        assert normalize_for_content(a) == normalize_for_content(b)
        assert content_equal(a, b)

    def test_none_and_empty(self):
        assert content_equal(None, empty_definition())


class TestValidateReferences:
    """Test integrity checks on loaded definitions."""

    def test_valid_definition(self):
        assert validate_references(sanitize(_nodes(), _edges())) == []

    def test_reports_duplicates_and_dangling_edges(self):
        definition = {
            "nodes": [{"id": "a"}, {"id": "a"}],
            "edges": [{"id": "e", "source": "a", "target": "missing"}],
        }
        problems = validate_references(definition)

        assert "Duplicate node id: a" in problems
        assert any("missing target node missing" in p for p in problems)
