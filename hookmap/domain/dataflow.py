"""Derived "available parameters" for formatter-class nodes.

A formatter lists the values reaching it through its incoming edges. The list
is derived state: it is recomputed from the edge set and written back into
``data["availableParams"]`` only when its identity fields changed.
"""
from __future__ import annotations

from collections.abc import Mapping as MappingABC
from typing import Any, Iterable, List, Mapping, MutableSequence, Optional, Set

from hookmap.domain.definition import node_index
from hookmap.domain.entities import AvailableParam
from hookmap.domain.specifications import EdgeTargeting, FormatterNode, filter_by_specification

AVAILABLE_PARAMS_KEY = "availableParams"
DEFAULT_SOURCE_HANDLE = "value"
PARAM_IDENTITY_FIELDS = ("name", "type", "src", "nodeId")


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def infer_type(value: Any) -> str:
    if value is MISSING:
        kind = "undefined"
    elif value is None:
        kind = "null"
    elif isinstance(value, (list, tuple)):
        kind = "array"
    elif isinstance(value, bool):
        kind = "boolean"
    elif isinstance(value, (int, float)):
        kind = "number"
    elif isinstance(value, str):
        kind = "string"
    elif isinstance(value, MappingABC):
        kind = "object"
    elif callable(value):
        kind = "function"
    else:
        kind = ""
    return kind or "any"


def compute_available_params(node_id: str,
                             nodes: Iterable[Mapping[str, Any]],
                             edges: Iterable[Mapping[str, Any]]) -> List[AvailableParam]:
    """One entry per edge entering ``node_id``, in edge order."""
    by_id = node_index(nodes)
    params: List[AvailableParam] = []
    for edge in filter_by_specification(list(edges), EdgeTargeting(node_id)):
        name = edge.get("sourceHandle") or DEFAULT_SOURCE_HANDLE
        source = by_id.get(edge.get("source"))
        if source is not None:
            raw = (source.get("data") or {}).get(name, MISSING)
            src = source.get("type") or "unknown"
            source_id = source.get("id")
        else:
            raw, src, source_id = MISSING, "unknown", edge.get("source")
        params.append({
            "name": name,
            "type": infer_type(raw),
            "src": src,
            "nodeId": source_id,
            "preview": None if raw is MISSING else raw,
        })
    return params


def params_changed(previous: Optional[List[Mapping[str, Any]]], computed: List[Mapping[str, Any]]) -> bool:
    """Compare on identity fields only; a new preview value alone is not a change."""
    previous = previous or []
    if len(previous) != len(computed):
        return True
    for old, new in zip(previous, computed):
        for key in PARAM_IDENTITY_FIELDS:
            if old.get(key) != new.get(key):
                return True
    return False


def refresh_available_params(nodes: MutableSequence[dict],
                             edges: Iterable[Mapping[str, Any]],
                             target_ids: Iterable[str],
                             registry) -> Set[str]:
    """Recompute the formatter nodes among ``target_ids``.

    Updated nodes are replaced in ``nodes`` by a copy carrying the new list.
    Returns the ids that actually changed.
    """
    wanted = set(target_ids)
    if not wanted:
        return set()
    edges = list(edges)
    is_formatter = FormatterNode(registry)
    updated: Set[str] = set()
    for index, node in enumerate(nodes):
        if node.get("id") not in wanted or not is_formatter.is_satisfied_by(node):
            continue
        computed = compute_available_params(node["id"], nodes, edges)
        data = node.get("data") or {}
        if not params_changed(data.get(AVAILABLE_PARAMS_KEY), computed):
            continue
        nodes[index] = {**node, "data": {**data, AVAILABLE_PARAMS_KEY: computed}}
        updated.add(node["id"])
    return updated


def refresh_all_available_params(nodes: MutableSequence[dict],
                                 edges: Iterable[Mapping[str, Any]],
                                 registry) -> Set[str]:
    """Full pass over every formatter node, used once after a graph load."""
    is_formatter = FormatterNode(registry)
    targets = [n["id"] for n in nodes if is_formatter.is_satisfied_by(n)]
    return refresh_available_params(nodes, edges, targets, registry)


def affected_targets(*edge_groups: Iterable[Mapping[str, Any]]) -> Set[str]:
    """Target ids touched by the given groups of added/removed/retargeted edges."""
    targets: Set[str] = set()
    for group in edge_groups:
        for edge in group:
            if edge and edge.get("target") is not None:
                targets.add(edge["target"])
    return targets
