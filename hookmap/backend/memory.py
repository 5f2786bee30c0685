from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from hookmap.backend.interface import GraphBackend
from hookmap.domain.definition import empty_definition
from hookmap.domain.entities import DeployState, GraphDefinition, GraphRecord, UsageEntity
from hookmap.domain.errors import LimitExceededError, PersistenceError
from hookmap.domain.fingerprint import DEFAULT_TRIGGER_TYPE, fingerprint


class InMemoryGraphBackend(GraphBackend):
    """Process-local graph service for development and tests.

    Compiling records the fingerprint of the saved definition as the deployed
    one and activates the graph; compiling a definition without a configured
    trigger drops the deployment.
    """

    def __init__(self, usage_limit: int = 100, trigger_type: str = DEFAULT_TRIGGER_TYPE) -> None:
        self._graphs: Dict[str, GraphRecord] = {}
        self._deployed: Dict[str, Optional[str]] = {}
        self._trigger_type = trigger_type
        self.usage: UsageEntity = {"used": 0, "limit": usage_limit}
        self.compile_calls: List[str] = []

    def _require(self, graph_id: str) -> GraphRecord:
        graph = self._graphs.get(str(graph_id))
        if graph is None:
            raise PersistenceError(f"Graph not found: {graph_id}", status=404)
        return graph

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def list_graphs(self) -> List[GraphRecord]:
        return [copy.deepcopy(g) for g in self._graphs.values()]

    async def create_graph(self, name: str) -> GraphRecord:
        graph_id = uuid4().hex
        record: GraphRecord = {
            "id": graph_id,
            "name": name,
            "status": "DRAFT",
            "definition": empty_definition(),
            "version": 1,
            "compiledAt": None,
        }
        self._graphs[graph_id] = record
        return copy.deepcopy(record)

    async def delete_graph(self, graph_id: str) -> None:
        self._require(graph_id)
        del self._graphs[str(graph_id)]
        self._deployed.pop(str(graph_id), None)

    def _write(self, graph_id: str, name: str, definition: GraphDefinition, status: str,
               bump_version: bool) -> GraphRecord:
        graph = self._require(graph_id)
        graph["name"] = name
        graph["definition"] = copy.deepcopy(definition)
        graph["status"] = status
        if bump_version:
            graph["version"] = graph.get("version", 0) + 1
        return copy.deepcopy(graph)

    async def save_graph(self, graph_id: str, name: str, definition: GraphDefinition,
                         status: str) -> GraphRecord:
        return self._write(graph_id, name, definition, status, bump_version=True)

    async def autosave(self, graph_id: str, name: str, definition: GraphDefinition,
                       status: str) -> Optional[GraphRecord]:
        try:
            return self._write(graph_id, name, definition, status, bump_version=False)
        except PersistenceError:
            return None

    async def fetch_deploy_state(self, graph_id: str) -> DeployState:
        self._require(graph_id)
        return {"deployFingerprint": self._deployed.get(str(graph_id))}

    async def compile_graph(self, graph_id: str) -> Dict[str, Any]:
        graph = self._require(graph_id)
        self.compile_calls.append(str(graph_id))
        fp = fingerprint(graph.get("definition"), self._trigger_type)
        if fp:
            self._deployed[str(graph_id)] = fp
            graph["status"] = "ACTIVE"
            graph["compiledAt"] = self._now()
        else:
            self._deployed.pop(str(graph_id), None)
        return {"ok": True, "deployFingerprint": fp, "status": graph["status"]}

    async def pause_graph(self, graph_id: str) -> Dict[str, Any]:
        graph = self._require(graph_id)
        graph["status"] = "PAUSED"
        return {"status": "PAUSED"}

    async def resume_graph(self, graph_id: str) -> Dict[str, Any]:
        graph = self._require(graph_id)
        if self.usage["used"] >= self.usage["limit"]:
            raise LimitExceededError("Over limit — upgrade or wait for next cycle to resume.", status=402)
        graph["status"] = "ACTIVE"
        return {"status": "ACTIVE"}

    async def get_usage(self) -> UsageEntity:
        return dict(self.usage)
