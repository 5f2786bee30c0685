from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class InputSpec:
    """One input port of a node type."""
    key: str
    label: str
    max_connections: Optional[int] = None


@dataclass(frozen=True)
class NodeTypeMeta:
    """Read-only metadata describing a node type."""
    type: str
    label: str
    icon: str = ""
    category: str = "transform"  # "trigger", "transform" or "action"
    max_per_graph: Optional[int] = None
    inputs: List[InputSpec] = field(default_factory=list)
    formatter: bool = False

    def input_spec(self, key: str) -> Optional[InputSpec]:
        for spec in self.inputs:
            if spec.key == key:
                return spec
        return None


@dataclass
class PaletteContext:
    """What palette entries may inspect when deciding availability and initial data."""
    graph: Optional[Dict[str, Any]] = None
    env: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PaletteEntry:
    type: str
    label: str
    icon: str = ""
    enabled: Optional[Callable[[PaletteContext], bool]] = None
    get_data: Optional[Callable[[PaletteContext], Dict[str, Any]]] = None

    def is_enabled(self, ctx: PaletteContext) -> bool:
        return self.enabled(ctx) if self.enabled else True

    def initial_data(self, ctx: PaletteContext) -> Dict[str, Any]:
        return dict(self.get_data(ctx) or {}) if self.get_data else {}


class NodeRegistry(ABC):
    """
    Abstract interface for the node type registry. The editor only reads from it.
    """

    @abstractmethod
    def get_node_meta(self, node_type: Optional[str]) -> Optional[NodeTypeMeta]:
        """
        Look up metadata for a node type.

        Args:
            node_type: Registry key of the node type

        Returns:
            The type's metadata, or None for unknown types
        """
        pass

    @abstractmethod
    def palette(self) -> List[PaletteEntry]:
        """
        Entries offered when the user picks a new node.

        Returns:
            Palette entries in display order
        """
        pass
