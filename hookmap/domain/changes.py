"""Apply editor change records to node and edge lists.

Change records follow the canvas convention: ``{"type": "position", "id": ...,
"position": {...}}``, ``{"type": "remove", "id": ...}``, ``{"type": "add",
"item": {...}}`` and so on. Inputs are never mutated; changed items are copied.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Set

POSITIONAL_CHANGE_TYPES = frozenset({"position", "dimensions", "select"})
NODE_CHANGE_TYPES = frozenset({"position", "dimensions", "select", "remove", "add", "replace"})
EDGE_CHANGE_TYPES = frozenset({"select", "remove", "add", "replace"})


def is_positional_only(changes: Iterable[Mapping[str, Any]]) -> bool:
    """True for a non-empty batch made only of position/dimensions/select changes."""
    changes = list(changes)
    return bool(changes) and all(c.get("type") in POSITIONAL_CHANGE_TYPES for c in changes)


def removed_ids(changes: Iterable[Mapping[str, Any]]) -> Set[str]:
    return {c["id"] for c in changes if c.get("type") == "remove" and "id" in c}


def _apply_item_change(item: Dict[str, Any], change: Mapping[str, Any]) -> Dict[str, Any]:
    kind = change.get("type")
    if kind == "position":
        updated = dict(item)
        if change.get("position") is not None:
            updated["position"] = dict(change["position"])
        if "dragging" in change:
            updated["dragging"] = change["dragging"]
        return updated
    if kind == "dimensions":
        updated = dict(item)
        dimensions = change.get("dimensions")
        if dimensions:
            updated["measured"] = dict(dimensions)
            if change.get("setAttributes"):
                updated["width"] = dimensions.get("width")
                updated["height"] = dimensions.get("height")
        if "resizing" in change:
            updated["resizing"] = change["resizing"]
        return updated
    if kind == "select":
        return {**item, "selected": bool(change.get("selected"))}
    if kind == "replace":
        return dict(change["item"])
    return item


def _apply_changes(changes: Iterable[Mapping[str, Any]],
                   items: Iterable[Mapping[str, Any]],
                   allowed: frozenset) -> List[Dict[str, Any]]:
    changes = list(changes)
    for change in changes:
        if change.get("type") not in allowed:
            raise ValueError(f"Unsupported change type: {change.get('type')!r}")

    result: List[Dict[str, Any]] = []
    by_id: Dict[str, List[Mapping[str, Any]]] = {}
    for change in changes:
        if change["type"] != "add":
            by_id.setdefault(change.get("id"), []).append(change)

    for item in items:
        current: Dict[str, Any] = dict(item)
        dropped = False
        for change in by_id.get(item.get("id"), []):
            if change["type"] == "remove":
                dropped = True
                break
            current = _apply_item_change(current, change)
        if not dropped:
            result.append(current)

    for change in changes:
        if change["type"] != "add":
            continue
        index = change.get("index")
        if index is None:
            result.append(dict(change["item"]))
        else:
            result.insert(index, dict(change["item"]))
    return result


def apply_node_changes(changes: Iterable[Mapping[str, Any]],
                       nodes: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return _apply_changes(changes, nodes, NODE_CHANGE_TYPES)


def apply_edge_changes(changes: Iterable[Mapping[str, Any]],
                       edges: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return _apply_changes(changes, edges, EDGE_CHANGE_TYPES)
