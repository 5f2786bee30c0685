"""Editing session for one selected graph.

The session owns the live node/edge lists, the last persisted snapshot and the
deploy bookkeeping of the selected graph. It is created when a graph is opened
and closed when the user navigates away. Every operation returns an
``ActionResult``; rejections and backend failures never escape as exceptions.
"""
from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from hookmap.application.autosave import AutosaveDebouncer
from hookmap.application.usage_monitor import UsageMonitor
from hookmap.backend.interface import GraphBackend
from hookmap.domain import changes as change_ops
from hookmap.domain.constraints import ConstraintResult, can_add_node, can_connect_edge, check_endpoints
from hookmap.domain.dataflow import affected_targets, refresh_all_available_params, refresh_available_params
from hookmap.domain.definition import (
    content_equal,
    copy_definition,
    defs_equal,
    empty_definition,
    rehydrate,
    sanitize,
    strip_callables,
    validate_references,
)
from hookmap.domain.entities import GraphDefinition, GraphRecord
from hookmap.domain.errors import LimitExceededError, PersistenceError
from hookmap.domain.events import (
    AutosaveDropped,
    DeployFailed,
    DeployStateFetchFailed,
    DeploymentCleanupFailed,
    DeploymentCleanupRequested,
    GraphAutosaved,
    GraphDeployed,
    GraphSaved,
    GraphStatusChanged,
    event_publisher,
)
from hookmap.domain.fingerprint import DEFAULT_TRIGGER_TYPE, fingerprint
from hookmap.domain.specifications import (
    NodeOfType,
    SameConnection,
    filter_by_specification,
    trigger_ready_to_deploy,
)
from hookmap.registry.interface import NodeRegistry, PaletteContext
from hookmap.scheduling import Scheduler

logger = logging.getLogger(__name__)

# New nodes are dropped centred on the pick position.
NODE_DROP_OFFSET = (80, 30)
DEFAULT_EDGE_TYPE = "default"
REQUIRED_TRIGGER_FIELDS = (("address", "address"), ("eventAbi", "event ABI"), ("networkKey", "network"))
_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_node_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=4))
    return f"n{int(time.time() * 1000)}-{suffix}"


def edge_id_for(connection: Mapping[str, Any]) -> str:
    return (
        f"xy-edge__{connection.get('source')}{connection.get('sourceHandle') or ''}"
        f"-{connection.get('target')}{connection.get('targetHandle') or ''}"
    )


@dataclass
class ActionResult:
    ok: bool
    error: Optional[str] = None
    value: Any = None
    cause: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any = None) -> ActionResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, cause: Optional[Exception] = None) -> ActionResult:
        return cls(ok=False, error=error, cause=cause)


@dataclass
class PaletteOption:
    type: str
    label: str
    icon: str
    can_add: bool
    reason: Optional[str] = None


@dataclass
class SessionState:
    graph: Dict[str, Any]
    definition: GraphDefinition
    dirty: bool
    show_deploy: bool
    compiling: bool
    can_toggle_pause: bool
    over_limit: bool
    autosave_pending: bool
    last_error: Optional[str] = None
    saved_fingerprint: Optional[str] = None


class NodeCallbacks:
    """Side-table of live ``onChange`` hooks keyed by node id.

    Persisted node data never carries callables; hooks are merged in only when
    nodes are handed to a presentation layer.
    """

    def __init__(self, default: Callable[..., Any]) -> None:
        self.default = default
        self._by_id: Dict[str, Callable[..., Any]] = {}

    def register(self, node_id: str, callback: Callable[..., Any]) -> None:
        self._by_id[node_id] = callback

    def discard(self, node_id: str) -> None:
        self._by_id.pop(node_id, None)

    def retain(self, node_ids) -> None:
        keep = set(node_ids)
        self._by_id = {k: v for k, v in self._by_id.items() if k in keep}

    def get(self, node_id: str) -> Callable[..., Any]:
        return self._by_id.get(node_id, self.default)

    def clear(self) -> None:
        self._by_id.clear()

    def merge(self, definition: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
        live = rehydrate(definition, self.default)
        for node in live["nodes"]:
            if node.get("id") in self._by_id:
                node["data"]["onChange"] = self._by_id[node["id"]]
        return live


class EditorSession:
    """Live editing state of the selected graph."""

    def __init__(
        self,
        graph: GraphRecord,
        backend: GraphBackend,
        registry: NodeRegistry,
        scheduler: Scheduler,
        autosave_delay_ms: int = 2000,
        trigger_type: str = DEFAULT_TRIGGER_TYPE,
        usage: Optional[UsageMonitor] = None,
        env: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.graph: Dict[str, Any] = dict(graph)
        self.nodes: List[Dict[str, Any]] = []
        self.edges: List[Dict[str, Any]] = []
        self.last_saved_def: GraphDefinition = empty_definition()
        self.compiling = False
        self.last_error: Optional[str] = None
        self._backend = backend
        self._registry = registry
        self._trigger_type = trigger_type
        self._usage = usage
        self._env = env or {}
        self._closed = False
        self.callbacks = NodeCallbacks(default=self.update_node_data)
        self._autosave = AutosaveDebouncer(scheduler, autosave_delay_ms, self._run_autosave)

    # --------------- Lifecycle ---------------
    @property
    def graph_id(self) -> str:
        return str(self.graph.get("id"))

    @property
    def selected(self) -> bool:
        return not self._closed

    async def load(self, prefetch_deploy_state: bool = True) -> ActionResult:
        """Adopt the record's definition as both live state and saved baseline."""
        definition = self.graph.get("definition") or empty_definition()
        for problem in validate_references(definition):
            logger.warning(f"Graph {self.graph_id}: {problem}")

        self.last_saved_def = copy_definition(definition)
        live = copy_definition(definition)
        self.nodes, self.edges = live["nodes"], live["edges"]
        self.graph.setdefault("deployFingerprint", None)

        # edges that predate the session never produced an edge-change event
        refresh_all_available_params(self.nodes, self.edges, self._registry)

        if prefetch_deploy_state:
            await self.refresh_deploy_state()
        return ActionResult.success(self.state())

    async def refresh_deploy_state(self) -> None:
        """Best-effort fetch of the stored deploy fingerprint."""
        graph_id = self.graph_id
        try:
            state = await self._backend.fetch_deploy_state(graph_id)
        except Exception as e:
            logger.info(f"[DEPLOY] deploy-state fetch for {graph_id} failed: {e}")
            event_publisher.publish(DeployStateFetchFailed(
                event_id="", timestamp=None, aggregate_id=graph_id, reason=str(e),
            ))
            return
        if self._closed or graph_id != self.graph_id:
            return
        self.graph["deployFingerprint"] = (state or {}).get("deployFingerprint") or None

    def close(self) -> None:
        self._autosave.cancel()
        self.callbacks.clear()
        self._closed = True

    # --------------- Derived state ---------------
    def current_definition(self) -> GraphDefinition:
        return sanitize(self.nodes, self.edges)

    @property
    def dirty(self) -> bool:
        return not content_equal(self.current_definition(), self.last_saved_def)

    @property
    def saved_fingerprint(self) -> Optional[str]:
        return fingerprint(self.last_saved_def, self._trigger_type)

    @property
    def show_deploy(self) -> bool:
        if not self.selected or self.dirty:
            return False
        current = self.saved_fingerprint
        return bool(current) and current != self.graph.get("deployFingerprint")

    @property
    def over_limit(self) -> bool:
        return self._usage.over_limit if self._usage else False

    @property
    def can_toggle_pause(self) -> bool:
        status = self.graph.get("status")
        if status not in ("ACTIVE", "PAUSED"):
            return False
        return not (status == "PAUSED" and self.over_limit)

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def state(self) -> SessionState:
        return SessionState(
            graph=dict(self.graph),
            definition=self.current_definition(),
            dirty=self.dirty,
            show_deploy=self.show_deploy,
            compiling=self.compiling,
            can_toggle_pause=self.can_toggle_pause,
            over_limit=self.over_limit,
            autosave_pending=self.autosave_pending,
            last_error=self.last_error,
            saved_fingerprint=self.saved_fingerprint,
        )

    def presentation(self) -> Dict[str, List[Dict[str, Any]]]:
        """Live nodes with their ``onChange`` hooks attached, for rendering."""
        return self.callbacks.merge({"nodes": self.nodes, "edges": self.edges})

    def _reject(self, reason: str, cause: Optional[Exception] = None) -> ActionResult:
        self.last_error = reason
        return ActionResult.failure(reason, cause)

    # --------------- Node editing ---------------
    def palette_context(self) -> PaletteContext:
        return PaletteContext(graph=dict(self.graph), env=dict(self._env))

    def palette(self, query: str = "") -> List[PaletteOption]:
        """Enabled palette entries matching ``query``, each annotated with its instance-cap check."""
        ctx = self.palette_context()
        needle = query.lower()
        options: List[PaletteOption] = []
        for entry in self._registry.palette():
            if not entry.is_enabled(ctx):
                continue
            if needle and needle not in entry.label.lower() and needle not in entry.type.lower():
                continue
            check = can_add_node(entry.type, self.nodes, self._registry)
            options.append(PaletteOption(
                type=entry.type,
                label=entry.label,
                icon=entry.icon,
                can_add=check.ok,
                reason=check.reason if not check.ok else f"Add {entry.label}",
            ))
        return options

    def add_node(self, node_type: str, data: Optional[Mapping[str, Any]] = None,
                 position: Optional[Mapping[str, float]] = None) -> ActionResult:
        check = can_add_node(node_type, self.nodes, self._registry)
        if not check.ok:
            return self._reject(check.reason)

        data = dict(data or {})
        hook = data.pop("onChange", None)
        x, y = (position or {}).get("x", 0), (position or {}).get("y", 0)
        node = {
            "id": new_node_id(),
            "type": node_type,
            "position": {"x": x - NODE_DROP_OFFSET[0], "y": y - NODE_DROP_OFFSET[1]},
            "data": strip_callables(data),
        }
        if callable(hook):
            self.callbacks.register(node["id"], hook)
        return self._commit_node_changes([{"type": "add", "item": node}], node)

    def add_node_from_palette(self, node_type: str,
                              position: Optional[Mapping[str, float]] = None) -> ActionResult:
        ctx = self.palette_context()
        entry = next((e for e in self._registry.palette() if e.type == node_type), None)
        if entry is None:
            return self._reject(f"Unknown node type: {node_type}")
        if not entry.is_enabled(ctx):
            return self._reject(f"{entry.label} is not available for this graph.")
        return self.add_node(entry.type, entry.initial_data(ctx), position)

    def update_node_data(self, node_id: str, patch: Mapping[str, Any]) -> ActionResult:
        """Merge ``patch`` into a node's data (the target of every node ``onChange`` hook)."""
        for index, node in enumerate(self.nodes):
            if node.get("id") == node_id:
                data = {**(node.get("data") or {}), **strip_callables(dict(patch))}
                self.nodes[index] = {**node, "data": data}
                # data edits are structural: never let a pending positional autosave persist them
                self._autosave.cancel()
                return ActionResult.success(self.nodes[index])
        return self._reject(f"Node not found: {node_id}")

    def apply_node_changes(self, changes: List[Mapping[str, Any]]) -> ActionResult:
        """Apply a batch of node changes and decide whether to (re)schedule autosave."""
        return self._commit_node_changes(changes)

    def _validate_node_additions(self, changes: List[Mapping[str, Any]]) -> ConstraintResult:
        running = list(self.nodes)
        ids = {n.get("id") for n in running}
        for change in changes:
            kind = change.get("type")
            item = change.get("item") or {}
            if kind == "replace":
                existing = next((n for n in running if n.get("id") == change.get("id")), None)
                if existing is None or existing.get("type") == item.get("type"):
                    continue
                # a type change counts as adding a node of the new type
                running = [n for n in running if n is not existing]
                check = can_add_node(item.get("type"), running, self._registry)
                if not check.ok:
                    return check
                running.append(item)
                continue
            if kind != "add":
                continue
            if not item.get("id") or item["id"] in ids:
                return ConstraintResult(ok=False, reason=f"Duplicate or missing node id: {item.get('id')}")
            check = can_add_node(item.get("type"), running, self._registry)
            if not check.ok:
                return check
            running.append(item)
            ids.add(item["id"])
        return ConstraintResult(ok=True)

    def _commit_node_changes(self, changes: List[Mapping[str, Any]], value: Any = None) -> ActionResult:
        check = self._validate_node_additions(changes)
        if not check.ok:
            return self._reject(check.reason)
        try:
            new_nodes = change_ops.apply_node_changes(changes, self.nodes)
        except (KeyError, ValueError) as e:
            return self._reject(f"Invalid node change: {e}")

        # positional autosave is only allowed while the graph is otherwise clean
        autosave_allowed = self.selected and not self.dirty
        positional = change_ops.is_positional_only(changes)

        removed = change_ops.removed_ids(changes)
        self.nodes = new_nodes
        if removed:
            dropped = [e for e in self.edges if e.get("source") in removed or e.get("target") in removed]
            self.edges = [e for e in self.edges if e.get("source") not in removed and e.get("target") not in removed]
            for node_id in removed:
                self.callbacks.discard(node_id)
            refresh_available_params(self.nodes, self.edges, affected_targets(dropped) - removed, self._registry)

        if positional and autosave_allowed:
            self._autosave.schedule()
        else:
            self._autosave.cancel()
        return ActionResult.success(value)

    # --------------- Edge editing ---------------
    def _check_connection_against(self, edges: List[Mapping[str, Any]],
                                  connection: Mapping[str, Any]) -> ConstraintResult:
        check = check_endpoints(self.nodes, connection)
        if not check.ok:
            return check
        return can_connect_edge(self.nodes, edges, connection, self._registry)

    def check_connection(self, connection: Mapping[str, Any]) -> ConstraintResult:
        return self._check_connection_against(self.edges, connection)

    def is_valid_connection(self, connection: Mapping[str, Any]) -> bool:
        """Drag-preview predicate: same check as ``connect``, no side effects."""
        return self.check_connection(connection).ok

    def connect(self, connection: Mapping[str, Any]) -> ActionResult:
        check = self.check_connection(connection)
        if not check.ok:
            return self._reject(check.reason)
        if filter_by_specification(self.edges, SameConnection(connection)):
            return ActionResult.success(None)

        edge = {
            "id": connection.get("id") or edge_id_for(connection),
            "source": connection.get("source"),
            "sourceHandle": connection.get("sourceHandle"),
            "target": connection.get("target"),
            "targetHandle": connection.get("targetHandle"),
            "type": connection.get("type") or DEFAULT_EDGE_TYPE,
            "data": strip_callables(dict(connection.get("data") or {})),
        }
        self.edges = self.edges + [edge]
        refresh_available_params(self.nodes, self.edges, {edge["target"]}, self._registry)
        self._autosave.cancel()
        return ActionResult.success(edge)

    def apply_edge_changes(self, changes: List[Mapping[str, Any]]) -> ActionResult:
        """Apply edge changes; recompute parameters only for the targets they touch."""
        running = list(self.edges)
        for change in changes:
            kind = change.get("type")
            if kind not in ("add", "replace"):
                continue
            item = change.get("item") or {}
            if kind == "replace":
                running = [e for e in running if e.get("id") != change.get("id")]
            check = self._check_connection_against(running, item)
            if not check.ok:
                return self._reject(check.reason)
            running.append(item)

        before = {e.get("id"): e for e in self.edges}
        try:
            new_edges = change_ops.apply_edge_changes(changes, self.edges)
        except (KeyError, ValueError) as e:
            return self._reject(f"Invalid edge change: {e}")

        touched = []
        for change in changes:
            kind = change.get("type")
            if kind in ("remove", "replace"):
                touched.append(before.get(change.get("id")))
            if kind in ("add", "replace"):
                touched.append(change.get("item"))
        self.edges = new_edges
        refresh_available_params(self.nodes, self.edges, affected_targets(touched), self._registry)

        if any(c.get("type") != "select" for c in changes):
            self._autosave.cancel()
        return ActionResult.success(None)

    # --------------- Persistence ---------------
    def _adopt_record(self, record: Mapping[str, Any]) -> None:
        updated = dict(record)
        for key in ("deployFingerprint", "compiledAt"):
            if key not in updated and key in self.graph:
                updated[key] = self.graph[key]
        self.graph = updated

    async def _run_autosave(self) -> None:
        if self._closed:
            return
        graph_id = self.graph_id
        safe = self.current_definition()
        try:
            updated = await self._backend.autosave(
                graph_id,
                self.graph.get("name"),
                safe,
                self.graph.get("status"),
            )
        except Exception as e:
            self._drop_autosave(graph_id, str(e))
            return
        if not updated:
            self._drop_autosave(graph_id, "no record returned")
            return
        if self._closed:
            return
        self._adopt_record(updated)
        self.last_saved_def = safe
        logger.debug(f"[AUTOSAVE] graph {graph_id} positions saved")
        event_publisher.publish(GraphAutosaved(
            event_id="", timestamp=None, aggregate_id=graph_id, version=updated.get("version"),
        ))

    def _drop_autosave(self, graph_id: str, reason: str) -> None:
        logger.debug(f"[AUTOSAVE] graph {graph_id} dropped: {reason}")
        event_publisher.publish(AutosaveDropped(
            event_id="", timestamp=None, aggregate_id=graph_id, reason=reason,
        ))

    async def _persist(self) -> Tuple[Dict[str, Any], GraphDefinition]:
        """Write the current definition; raises PersistenceError."""
        safe = self.current_definition()
        updated = await self._backend.save_graph(
            self.graph_id,
            self.graph.get("name"),
            safe,
            self.graph.get("status") or "DRAFT",
        )
        self._adopt_record(updated)
        self.last_saved_def = safe
        event_publisher.publish(GraphSaved(
            event_id="", timestamp=None, aggregate_id=self.graph_id, version=updated.get("version"),
        ))
        return self.graph, safe

    async def save(self) -> ActionResult:
        """Save-only path; deprovisions a deployment whose trigger was removed."""
        if not self.selected:
            return self._reject("Select or create a graph first.")
        before = self.graph.get("deployFingerprint") or None
        try:
            record, saved = await self._persist()
        except PersistenceError as e:
            return self._reject(f"Save failed: {str(e) or 'Unknown error'}", e)
        self.last_error = None

        if before and not fingerprint(saved, self._trigger_type):
            await self._cleanup_deployment(before)
        return ActionResult.success(dict(self.graph))

    async def _cleanup_deployment(self, previous_fingerprint: str) -> None:
        graph_id = self.graph_id
        event_publisher.publish(DeploymentCleanupRequested(
            event_id="", timestamp=None, aggregate_id=graph_id, previous_fingerprint=previous_fingerprint,
        ))
        try:
            await self._backend.compile_graph(graph_id)
        except Exception as e:
            # retried implicitly by the next compile of this graph
            logger.warning(f"[DEPLOY] cleanup compile for {graph_id} failed: {e}")
            event_publisher.publish(DeploymentCleanupFailed(
                event_id="", timestamp=None, aggregate_id=graph_id, reason=str(e),
            ))
        self.graph["deployFingerprint"] = None

    def _deploy_blocker(self, definition: GraphDefinition) -> Optional[str]:
        meta = self._registry.get_node_meta(self._trigger_type)
        label = meta.label if meta else self._trigger_type
        triggers = filter_by_specification(definition["nodes"], NodeOfType(self._trigger_type))
        if not triggers:
            return f"Add at least one {label} node before deploying."
        incomplete = filter_by_specification(triggers, trigger_ready_to_deploy(self._trigger_type).not_())
        missing: List[str] = []
        for node in incomplete:
            data = node.get("data") or {}
            for key, name in REQUIRED_TRIGGER_FIELDS:
                if not data.get(key) and name not in missing:
                    missing.append(name)
        if missing:
            return (
                f"Some {label} nodes are missing {', '.join(missing)}. "
                "Open them to finish configuration."
            )
        return None

    async def deploy(self) -> ActionResult:
        """Save if needed, compile, and record the deployed fingerprint."""
        if not self.selected:
            return self._reject("Select or create a graph first.")
        if self.compiling:
            return self._reject("A deploy is already in progress.")
        definition = self.current_definition()
        blocker = self._deploy_blocker(definition)
        if blocker:
            return self._reject(blocker)

        self.compiling = True
        graph_id = self.graph_id
        try:
            if not defs_equal(definition, self.last_saved_def):
                await self._persist()
            await self._backend.compile_graph(graph_id)
        except PersistenceError as e:
            message = f"Compile failed: {str(e) or 'Unknown error'}"
            logger.info(f"[DEPLOY] graph {graph_id}: {message}")
            event_publisher.publish(DeployFailed(
                event_id="", timestamp=None, aggregate_id=graph_id, reason=str(e),
            ))
            return self._reject(message, e)
        finally:
            self.compiling = False

        fp = fingerprint(self.current_definition(), self._trigger_type)
        self.graph.update({
            "status": "ACTIVE",
            "compiledAt": datetime.now(timezone.utc).isoformat(),
            "deployFingerprint": fp,
        })
        self.last_error = None
        event_publisher.publish(GraphDeployed(
            event_id="", timestamp=None, aggregate_id=graph_id, fingerprint=fp,
        ))
        return ActionResult.success(dict(self.graph))

    async def set_paused(self, paused: bool) -> ActionResult:
        """Toggle PAUSED/ACTIVE; local status only follows a successful backend reply."""
        if not self.selected:
            return self._reject("Select or create a graph first.")
        if self.graph.get("status") not in ("ACTIVE", "PAUSED"):
            return self._reject("Only deployed graphs can be paused or resumed.")
        if not paused and self.over_limit:
            message = "Over limit — resume disabled until you upgrade or usage resets."
            return self._reject(message, LimitExceededError(message, status=402))

        graph_id = self.graph_id
        try:
            if paused:
                reply = await self._backend.pause_graph(graph_id)
            else:
                reply = await self._backend.resume_graph(graph_id)
        except LimitExceededError as e:
            return self._reject(str(e), e)
        except PersistenceError as e:
            action = "Pause" if paused else "Resume"
            return self._reject(f"{action} failed: {str(e) or 'Unknown error'}", e)

        status = (reply or {}).get("status") or ("PAUSED" if paused else "ACTIVE")
        self.graph["status"] = status
        self.last_error = None
        event_publisher.publish(GraphStatusChanged(
            event_id="", timestamp=None, aggregate_id=graph_id, status=status,
        ))
        return ActionResult.success(status)

    def revert(self) -> ActionResult:
        """Discard live edits and restore the last saved definition."""
        restored = copy_definition(self.last_saved_def)
        self.nodes, self.edges = restored["nodes"], restored["edges"]
        self.callbacks.retain(n.get("id") for n in self.nodes)
        self._autosave.cancel()
        return ActionResult.success(self.current_definition())
