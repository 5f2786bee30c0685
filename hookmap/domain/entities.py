"""Internal domain entities as TypedDicts for type safety at boundaries."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict


class Position(TypedDict):
    x: float
    y: float


class NodeInstance(TypedDict, total=False):
    id: str
    type: str
    position: Position
    data: Dict[str, Any]
    # presentation-only fields, never part of content comparison
    width: float
    height: float
    selected: bool


class EdgeInstance(TypedDict, total=False):
    id: str
    source: str
    sourceHandle: Optional[str]
    target: str
    targetHandle: Optional[str]
    type: Optional[str]
    data: Dict[str, Any]


class GraphDefinition(TypedDict):
    nodes: List[NodeInstance]
    edges: List[EdgeInstance]


class AvailableParam(TypedDict):
    name: str
    type: str
    src: str
    nodeId: Optional[str]
    preview: Any


class GraphRecord(TypedDict, total=False):
    id: str
    name: str
    status: str
    definition: GraphDefinition
    version: int
    compiledAt: Optional[str]
    deployFingerprint: Optional[str]


class DeployState(TypedDict):
    deployFingerprint: Optional[str]


class UsageEntity(TypedDict):
    used: int
    limit: int
