"""Graph list and the currently open editing session."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from hookmap.application.editor_session import ActionResult, EditorSession
from hookmap.application.graph_validation_service import GraphValidationService
from hookmap.application.usage_monitor import UsageMonitor
from hookmap.backend.interface import GraphBackend
from hookmap.domain.errors import PersistenceError, ValidationError
from hookmap.domain.events import GraphCreated, GraphDeleted, event_publisher
from hookmap.domain.fingerprint import DEFAULT_TRIGGER_TYPE
from hookmap.registry.interface import NodeRegistry
from hookmap.scheduling import Scheduler

logger = logging.getLogger(__name__)


class GraphWorkspace:
    """Owns the graph list; at most one ``EditorSession`` is open at a time."""

    def __init__(
        self,
        backend: GraphBackend,
        registry: NodeRegistry,
        scheduler: Scheduler,
        validator: Optional[GraphValidationService] = None,
        usage: Optional[UsageMonitor] = None,
        autosave_delay_ms: int = 2000,
        trigger_type: str = DEFAULT_TRIGGER_TYPE,
        env: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.backend = backend
        self.registry = registry
        self.usage = usage
        self.graphs: List[Dict[str, Any]] = []
        self.session: Optional[EditorSession] = None
        self._scheduler = scheduler
        self._validator = validator or GraphValidationService()
        self._autosave_delay_ms = autosave_delay_ms
        self._trigger_type = trigger_type
        self._env = env or {}

    def find_graph(self, graph_id: str) -> Optional[Dict[str, Any]]:
        return next((g for g in self.graphs if str(g.get("id")) == str(graph_id)), None)

    async def refresh(self) -> ActionResult:
        try:
            self.graphs = list(await self.backend.list_graphs() or [])
        except PersistenceError as e:
            logger.warning(f"Listing graphs failed: {e}")
            return ActionResult.failure(f"Could not load graphs: {e}", e)
        return ActionResult.success(list(self.graphs))

    async def create_graph(self, name: str) -> ActionResult:
        try:
            name = self._validator.validate_name(name)
        except ValidationError as e:
            return ActionResult.failure(str(e))
        try:
            created = await self.backend.create_graph(name)
        except PersistenceError as e:
            return ActionResult.failure(f"Create failed: {str(e) or 'Unknown error'}", e)

        self.graphs.insert(0, created)
        event_publisher.publish(GraphCreated(
            event_id="", timestamp=None, aggregate_id=str(created.get("id")), name=name,
        ))
        return await self.open_graph(str(created["id"]))

    async def open_graph(self, graph_id: Optional[str]) -> ActionResult:
        """Open ``graph_id``; an unknown id falls back to the first graph."""
        record = self.find_graph(graph_id) if graph_id is not None else None
        if record is None:
            if not self.graphs:
                return ActionResult.failure("No graphs yet. Create one first.")
            record = self.graphs[0]
            logger.info(f"Graph {graph_id} not found, opening {record.get('id')} instead")

        self.close_session()
        session = EditorSession(
            graph=record,
            backend=self.backend,
            registry=self.registry,
            scheduler=self._scheduler,
            autosave_delay_ms=self._autosave_delay_ms,
            trigger_type=self._trigger_type,
            usage=self.usage,
            env=self._env,
        )
        self.session = session
        await session.load()
        return ActionResult.success(session)

    def close_session(self) -> None:
        """Close the open session, folding its latest saved state back into the list."""
        session = self.session
        if session is None:
            return
        session.close()
        for index, graph in enumerate(self.graphs):
            if str(graph.get("id")) == session.graph_id:
                self.graphs[index] = {**session.graph, "definition": session.last_saved_def}
        self.session = None

    async def delete_graph(self, graph_id: str) -> ActionResult:
        record = self.find_graph(graph_id)
        if record is None:
            return ActionResult.failure(f"Graph not found: {graph_id}")
        try:
            await self.backend.delete_graph(str(record["id"]))
        except PersistenceError as e:
            return ActionResult.failure(f"Delete failed: {str(e) or 'Unknown error'}", e)

        if self.session is not None and self.session.graph_id == str(record["id"]):
            self.session.close()
            self.session = None
        self.graphs = [g for g in self.graphs if str(g.get("id")) != str(record["id"])]
        event_publisher.publish(GraphDeleted(
            event_id="", timestamp=None, aggregate_id=str(record["id"]), name=record.get("name", ""),
        ))
        if self.graphs and self.session is None:
            await self.open_graph(str(self.graphs[0]["id"]))
        return ActionResult.success(str(record["id"]))
