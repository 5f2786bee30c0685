"""Specification pattern for reusable node/edge predicates."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class Specification(ABC):
    """Abstract base for specifications (collection filters)."""

    @abstractmethod
    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        """Check if candidate satisfies this specification."""
        pass

    def and_(self, other: Specification) -> Specification:
        """Combine with AND logic."""
        return AndSpecification(self, other)

    def or_(self, other: Specification) -> Specification:
        """Combine with OR logic."""
        return OrSpecification(self, other)

    def not_(self) -> Specification:
        """Negate this specification."""
        return NotSpecification(self)


class AndSpecification(Specification):
    """AND composite specification."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return self.left.is_satisfied_by(candidate) and self.right.is_satisfied_by(candidate)


class OrSpecification(Specification):
    """OR composite specification."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return self.left.is_satisfied_by(candidate) or self.right.is_satisfied_by(candidate)


class NotSpecification(Specification):
    """NOT specification."""

    def __init__(self, spec: Specification):
        self.spec = spec

    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        return not self.spec.is_satisfied_by(candidate)


# Node Specifications

class NodeOfType(Specification):
    """Nodes of an exact registry type."""

    def __init__(self, node_type: str):
        self.node_type = node_type

    def is_satisfied_by(self, node: Dict[str, Any]) -> bool:
        return node.get("type") == self.node_type


class NodeHasData(Specification):
    """Nodes whose data carries a truthy value for every given key."""

    def __init__(self, *keys: str):
        self.keys = keys

    def is_satisfied_by(self, node: Dict[str, Any]) -> bool:
        data = node.get("data") or {}
        return all(data.get(key) for key in self.keys)


class NodeHasAnyData(Specification):
    """Nodes whose data carries a truthy value for at least one given key."""

    def __init__(self, *keys: str):
        self.keys = keys

    def is_satisfied_by(self, node: Dict[str, Any]) -> bool:
        data = node.get("data") or {}
        return any(data.get(key) for key in self.keys)


class FormatterNode(Specification):
    """Nodes whose registry metadata marks them as formatter-class."""

    def __init__(self, registry):
        """
        Args:
            registry: Object exposing get_node_meta(type) -> NodeTypeMeta | None
        """
        self.registry = registry

    def is_satisfied_by(self, node: Dict[str, Any]) -> bool:
        meta = self.registry.get_node_meta(node.get("type"))
        return bool(meta and meta.formatter)


def trigger_configured(trigger_type: str) -> Specification:
    """Trigger carrying address, event ABI and a network (key or legacy name)."""
    return (
        NodeOfType(trigger_type)
        .and_(NodeHasData("address", "eventAbi"))
        .and_(NodeHasAnyData("networkKey", "network"))
    )


def trigger_ready_to_deploy(trigger_type: str) -> Specification:
    """Trigger carrying every field the compiler needs."""
    return NodeOfType(trigger_type).and_(NodeHasData("address", "eventAbi", "networkKey"))


# Edge Specifications

class EdgeTargeting(Specification):
    """Edges whose target is a specific node."""

    def __init__(self, node_id: str):
        self.node_id = node_id

    def is_satisfied_by(self, edge: Dict[str, Any]) -> bool:
        return edge.get("target") == self.node_id


class EdgeIntoHandle(Specification):
    """Edges landing on an exact (target, targetHandle) pair; None is its own handle."""

    def __init__(self, node_id: str, handle: Optional[str]):
        self.node_id = node_id
        self.handle = handle

    def is_satisfied_by(self, edge: Dict[str, Any]) -> bool:
        return edge.get("target") == self.node_id and edge.get("targetHandle") == self.handle


class SameConnection(Specification):
    """Edges duplicating a connection (same endpoints and handles)."""

    def __init__(self, connection: Dict[str, Any]):
        self.connection = connection

    def is_satisfied_by(self, edge: Dict[str, Any]) -> bool:
        return all(
            edge.get(key) == self.connection.get(key)
            for key in ("source", "target", "sourceHandle", "targetHandle")
        )


# Helper function to filter collections

def filter_by_specification(items: List[Dict[str, Any]], spec: Specification) -> List[Dict[str, Any]]:
    """Filter a collection using a specification."""
    return [item for item in items if spec.is_satisfied_by(item)]
