from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from hookmap.backend.interface import GraphBackend
from hookmap.domain.entities import DeployState, GraphDefinition, GraphRecord, UsageEntity
from hookmap.domain.errors import LimitExceededError, PersistenceError, UnauthorizedError

logger = logging.getLogger(__name__)


class HttpGraphBackend(GraphBackend):
    """Talks to the graph service over its JSON HTTP API."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url[:-1] if base_url.endswith("/") else base_url
        self._token = token
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> HttpGraphBackend:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --------------- Internal helpers ---------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, body: Any = None) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                path,
                content=None if body is None else json.dumps(body),
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Network error: {e}") from e
        if response.status_code == 401:
            raise UnauthorizedError("Unauthorized", status=401)
        return response

    @staticmethod
    def _json_or_raise(response: httpx.Response) -> Any:
        text = response.text
        try:
            data = json.loads(text) if text else {}
        except ValueError as e:
            raise PersistenceError("Invalid JSON in response", status=response.status_code) from e
        if not response.is_success:
            body = data if isinstance(data, dict) else {}
            message = body.get("error") or body.get("message") or response.reason_phrase or "Request failed"
            raise PersistenceError(message, status=response.status_code, data=data)
        return data

    @staticmethod
    def _limit_error(response: httpx.Response, default_message: str) -> LimitExceededError:
        try:
            data = response.json()
        except ValueError:
            data = {}
        message = data.get("message") if isinstance(data, dict) else None
        return LimitExceededError(message or default_message, status=402, data=data)

    # --------------- Public API ---------------
    async def list_graphs(self) -> List[GraphRecord]:
        return self._json_or_raise(await self._request("GET", "/graphs"))

    async def create_graph(self, name: str) -> GraphRecord:
        body = {"name": name, "definition": {"nodes": [], "edges": []}, "status": "DRAFT"}
        return self._json_or_raise(await self._request("POST", "/graphs", body))

    async def delete_graph(self, graph_id: str) -> None:
        self._json_or_raise(await self._request("DELETE", f"/graphs/{graph_id}", {}))

    async def save_graph(self, graph_id: str, name: str, definition: GraphDefinition,
                         status: str) -> GraphRecord:
        body = {"name": name, "definition": definition, "status": status}
        return self._json_or_raise(await self._request("PUT", f"/graphs/{graph_id}", body))

    async def autosave(self, graph_id: str, name: str, definition: GraphDefinition,
                       status: str) -> Optional[GraphRecord]:
        body = {"name": name, "definition": definition, "status": status, "bumpVersion": False}
        try:
            response = await self._request("PUT", f"/graphs/{graph_id}", body)
            if not response.is_success:
                logger.debug(f"[AUTOSAVE] graph {graph_id} rejected with {response.status_code}")
                return None
            return response.json()
        except (PersistenceError, ValueError) as e:
            logger.debug(f"[AUTOSAVE] graph {graph_id} failed: {e}")
            return None

    async def fetch_deploy_state(self, graph_id: str) -> DeployState:
        data = self._json_or_raise(await self._request("GET", f"/graphs/{graph_id}/deploy-state"))
        return {"deployFingerprint": (data or {}).get("deployFingerprint") or None}

    async def compile_graph(self, graph_id: str) -> Dict[str, Any]:
        return self._json_or_raise(await self._request("POST", f"/graphs/{graph_id}/compile", {}))

    async def pause_graph(self, graph_id: str) -> Dict[str, Any]:
        response = await self._request("POST", f"/graphs/{graph_id}/pause", {})
        if response.status_code == 402:
            raise self._limit_error(response, "Over limit — cannot pause/resume.")
        return self._json_or_raise(response)

    async def resume_graph(self, graph_id: str) -> Dict[str, Any]:
        response = await self._request("POST", f"/graphs/{graph_id}/resume", {})
        if response.status_code == 402:
            raise self._limit_error(response, "Over limit — cannot resume.")
        return self._json_or_raise(response)

    async def get_usage(self) -> UsageEntity:
        return self._json_or_raise(await self._request("GET", "/usage"))
