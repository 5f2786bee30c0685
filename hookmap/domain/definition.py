"""Graph definition model: sanitize, rehydrate and compare node/edge sets.

The persisted definition is strictly data-only. Live editor state may carry
callables (the node ``onChange`` hook) which must never reach the backend or
take part in comparisons.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional

from hookmap.domain.entities import GraphDefinition, NodeInstance


def empty_definition() -> GraphDefinition:
    return {"nodes": [], "edges": []}


def strip_callables(value: Any) -> Any:
    """Return a copy of ``value`` with callables removed at every depth."""
    if isinstance(value, Mapping):
        return {k: strip_callables(v) for k, v in value.items() if not callable(v)}
    if isinstance(value, (list, tuple)):
        return [strip_callables(v) for v in value if not callable(v)]
    return value


def _sanitize_node(node: Mapping[str, Any]) -> NodeInstance:
    safe: Dict[str, Any] = {}
    for key, value in node.items():
        if key == "data":
            safe["data"] = strip_callables(value or {})
        elif not callable(value):
            safe[key] = strip_callables(value)
    if "data" not in safe:
        safe["data"] = {}
    return safe  # type: ignore[return-value]


def sanitize(nodes: Optional[Iterable[Mapping[str, Any]]] = None,
             edges: Optional[Iterable[Mapping[str, Any]]] = None) -> GraphDefinition:
    """Build a serializable definition from live nodes and edges.

    Never mutates its inputs and is idempotent.
    """
    safe_nodes = [_sanitize_node(n) for n in (nodes or [])]
    safe_edges = [strip_callables(e) for e in (edges or [])]
    return {"nodes": safe_nodes, "edges": safe_edges}


def rehydrate(definition: Optional[Mapping[str, Any]],
              on_change: Callable[..., Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Copy ``definition`` into live form with ``on_change`` attached to each node's data."""
    definition = definition or {}
    nodes = [
        {**n, "data": {**(n.get("data") or {}), "onChange": on_change}}
        for n in definition.get("nodes") or []
    ]
    edges = [dict(e) for e in definition.get("edges") or []]
    return {"nodes": nodes, "edges": edges}


def copy_definition(definition: Optional[Mapping[str, Any]]) -> GraphDefinition:
    definition = definition or {}
    return {
        "nodes": copy.deepcopy(list(definition.get("nodes") or [])),
        "edges": copy.deepcopy(list(definition.get("edges") or [])),
    }


def _flatten_handle(handle: Any) -> Any:
    if isinstance(handle, Mapping) and handle.get("id"):
        return handle["id"]
    return handle


def normalize_for_content(definition: Optional[Mapping[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Reduce a definition to the fields that make up its content.

    Positions, sizes and selection are dropped, so moving a node never changes
    the normalized shape.
    """
    definition = definition or {}
    nodes = [
        {
            "id": n.get("id"),
            "type": n.get("type"),
            "data": n.get("data") or {},
        }
        for n in definition.get("nodes") or []
    ]
    edges = [
        {
            "id": e.get("id"),
            "source": e.get("source"),
            "target": e.get("target"),
            "type": e.get("type"),
            "data": e.get("data") or {},
            "sourceHandle": _flatten_handle(e.get("sourceHandle")),
            "targetHandle": _flatten_handle(e.get("targetHandle")),
        }
        for e in definition.get("edges") or []
    ]
    return {"nodes": nodes, "edges": edges}


def content_equal(a: Optional[Mapping[str, Any]], b: Optional[Mapping[str, Any]]) -> bool:
    """Structural equality of the normalized shapes.

    Sequence order matters: the same nodes in a different order compare unequal.
    """
    return normalize_for_content(a) == normalize_for_content(b)


def defs_equal(a: Optional[Mapping[str, Any]], b: Optional[Mapping[str, Any]]) -> bool:
    """Full equality of two definitions, positions included."""
    return copy_definition(a) == copy_definition(b)


def node_index(nodes: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    return {n["id"]: n for n in nodes if "id" in n}


def validate_references(definition: Mapping[str, Any]) -> List[str]:
    """List integrity problems: duplicate node ids and dangling edge endpoints."""
    problems: List[str] = []
    seen = set()
    for node in definition.get("nodes") or []:
        node_id = node.get("id")
        if node_id in seen:
            problems.append(f"Duplicate node id: {node_id}")
        seen.add(node_id)
    for edge in definition.get("edges") or []:
        for end in ("source", "target"):
            if edge.get(end) not in seen:
                problems.append(f"Edge {edge.get('id')} references missing {end} node {edge.get(end)}")
    return problems
