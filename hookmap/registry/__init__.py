from .interface import InputSpec, NodeRegistry, NodeTypeMeta, PaletteContext, PaletteEntry
from .memory import InMemoryNodeRegistry, build_default_registry

__all__ = [
    "InputSpec",
    "NodeRegistry",
    "NodeTypeMeta",
    "PaletteContext",
    "PaletteEntry",
    "InMemoryNodeRegistry",
    "build_default_registry",
]
