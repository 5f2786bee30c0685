from typing import Dict, Iterable, List, Optional

from hookmap.registry.interface import (
    InputSpec,
    NodeRegistry,
    NodeTypeMeta,
    PaletteContext,
    PaletteEntry,
)


class InMemoryNodeRegistry(NodeRegistry):
    """
    Registry backed by plain lists of metadata and palette entries.
    """

    def __init__(self, types: Iterable[NodeTypeMeta], palette: Optional[Iterable[PaletteEntry]] = None):
        self._types: Dict[str, NodeTypeMeta] = {meta.type: meta for meta in types}
        if palette is None:
            palette = [PaletteEntry(type=m.type, label=m.label, icon=m.icon) for m in self._types.values()]
        self._palette = list(palette)

    def get_node_meta(self, node_type: Optional[str]) -> Optional[NodeTypeMeta]:
        if node_type is None:
            return None
        return self._types.get(node_type)

    def palette(self) -> List[PaletteEntry]:
        return list(self._palette)


def _discord_enabled(ctx: PaletteContext) -> bool:
    return str(ctx.env.get("ENABLE_DISCORD", "")).lower() in ("1", "true", "yes")


def _webhook_defaults(ctx: PaletteContext) -> dict:
    return {"url": "", "method": "POST"}


DEFAULT_NODE_TYPES = [
    NodeTypeMeta(
        type="ContractEvent",
        label="Contract Event",
        icon="⛓",
        category="trigger",
        max_per_graph=1,
    ),
    NodeTypeMeta(
        type="Filter",
        label="Filter",
        icon="⧩",
        category="transform",
        inputs=[InputSpec(key="in", label="Input", max_connections=1)],
    ),
    NodeTypeMeta(
        type="Formatter",
        label="Formatter",
        icon="✎",
        category="transform",
        inputs=[InputSpec(key="in", label="Values")],
        formatter=True,
    ),
    NodeTypeMeta(
        type="Webhook",
        label="Webhook",
        icon="↗",
        category="action",
        inputs=[InputSpec(key="in", label="Payload", max_connections=1)],
    ),
    NodeTypeMeta(
        type="DiscordWebhook",
        label="Discord",
        icon="✉",
        category="action",
        inputs=[InputSpec(key="in", label="Message", max_connections=1)],
    ),
]

DEFAULT_PALETTE = [
    PaletteEntry(type="ContractEvent", label="Contract Event", icon="⛓"),
    PaletteEntry(type="Filter", label="Filter", icon="⧩"),
    PaletteEntry(type="Formatter", label="Formatter", icon="✎",
                 get_data=lambda ctx: {"template": ""}),
    PaletteEntry(type="Webhook", label="Webhook", icon="↗", get_data=_webhook_defaults),
    PaletteEntry(type="DiscordWebhook", label="Discord", icon="✉",
                 enabled=_discord_enabled, get_data=_webhook_defaults),
]


def build_default_registry() -> InMemoryNodeRegistry:
    return InMemoryNodeRegistry(DEFAULT_NODE_TYPES, DEFAULT_PALETTE)
