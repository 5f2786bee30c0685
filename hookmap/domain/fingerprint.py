"""Deploy fingerprint: a stable key for the graph's configured trigger.

Two definitions whose trigger points at the same network, contract address and
event signature yield the same key, whatever the surrounding data looks like.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from hookmap.domain.specifications import filter_by_specification, trigger_configured

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_TYPE = "ContractEvent"


def normalize_network(data: Mapping[str, Any]) -> str:
    if data.get("networkKey"):
        return str(data["networkKey"])
    return re.sub(r"\s+", "-", str(data.get("network") or "").lower())


def _load_event_abi(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("eventAbi is not valid JSON, treating it as empty")
            return {}
    return raw if isinstance(raw, Mapping) else {}


def event_selector(event_abi: Any) -> str:
    """``name(type1,type2,...)`` from an event ABI entry."""
    abi = _load_event_abi(event_abi)
    name = abi.get("name") or "event:?"
    inputs = abi.get("inputs")
    types: List[str] = []
    if isinstance(inputs, list):
        types = [str((i or {}).get("type") or "") or "unknown" for i in inputs]
    return f"{name}({','.join(types)})"


def find_configured_trigger(definition: Optional[Mapping[str, Any]],
                            trigger_type: str = DEFAULT_TRIGGER_TYPE) -> Optional[Mapping[str, Any]]:
    nodes = list((definition or {}).get("nodes") or [])
    matches = filter_by_specification(nodes, trigger_configured(trigger_type))
    return matches[0] if matches else None


def fingerprint(definition: Optional[Mapping[str, Any]],
                trigger_type: str = DEFAULT_TRIGGER_TYPE) -> Optional[str]:
    """Return ``network|address|selector`` for the configured trigger, or None."""
    trigger = find_configured_trigger(definition, trigger_type)
    if trigger is None:
        return None
    data = trigger.get("data") or {}
    network = normalize_network(data)
    address = str(data.get("address") or "").lower()
    return f"{network}|{address}|{event_selector(data.get('eventAbi'))}"
