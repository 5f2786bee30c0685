"""Instance caps per node type and connection caps per input handle.

Both checks are pure: they read the node/edge sets and registry metadata and
never write. Callers run them strictly before committing a change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from hookmap.domain.specifications import EdgeIntoHandle, filter_by_specification

DEFAULT_TARGET_HANDLE = "in"


@dataclass(frozen=True)
class ConstraintResult:
    ok: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


ALLOWED = ConstraintResult(ok=True)


def count_by_type(nodes: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for node in nodes:
        counts[node.get("type")] = counts.get(node.get("type"), 0) + 1
    return counts


def can_add_node(node_type: str, nodes: Iterable[Mapping[str, Any]], registry) -> ConstraintResult:
    """Check the per-graph instance cap of ``node_type``."""
    meta = registry.get_node_meta(node_type)
    limit = meta.max_per_graph if meta else None
    if not limit:
        return ALLOWED

    current = count_by_type(nodes).get(node_type, 0)
    if current >= limit:
        plural = "nodes" if limit > 1 else "node"
        return ConstraintResult(
            ok=False,
            reason=f"Limit reached: only {limit} {node_type} {plural} allowed in a graph.",
        )
    return ALLOWED


def can_connect_edge(nodes: Iterable[Mapping[str, Any]],
                     edges: Iterable[Mapping[str, Any]],
                     proposed: Mapping[str, Any],
                     registry) -> ConstraintResult:
    """Check the connection cap of the input handle ``proposed`` lands on."""
    target_id = proposed.get("target")
    target = next((n for n in nodes if n.get("id") == target_id), None)
    if target is None:
        return ALLOWED

    meta = registry.get_node_meta(target.get("type"))
    if meta is None:
        return ALLOWED

    handle = proposed.get("targetHandle")
    spec = meta.input_spec(handle or DEFAULT_TARGET_HANDLE)
    if spec is None or not spec.max_connections or spec.max_connections <= 0:
        return ALLOWED

    cap = spec.max_connections
    existing = filter_by_specification(list(edges), EdgeIntoHandle(target_id, handle))
    if len(existing) >= cap:
        noun = "connection" if cap == 1 else "connections"
        return ConstraintResult(
            ok=False,
            reason=f'Input "{spec.label}" accepts at most {cap} {noun}.',
        )
    return ALLOWED


def check_endpoints(nodes: Iterable[Mapping[str, Any]], proposed: Mapping[str, Any]) -> ConstraintResult:
    """Both ends of ``proposed`` must name nodes of the graph."""
    ids = {n.get("id") for n in nodes}
    for end in ("source", "target"):
        if proposed.get(end) not in ids:
            return ConstraintResult(ok=False, reason=f"Unknown {end} node: {proposed.get(end)}")
    return ALLOWED
