"""Service for workspace/session lookups shared by the routers."""
from __future__ import annotations

from typing import Any, Dict

from hookmap.application.editor_session import ActionResult, EditorSession
from hookmap.application.workspace import GraphWorkspace
from hookmap.domain.errors import NotFoundError, PersistenceError, ValidationError


class GraphAccessService:
    """Centralizes graph/session validation to avoid controller duplication."""

    def __init__(self, workspace: GraphWorkspace) -> None:
        self._workspace = workspace

    def require_graph_exists(self, graph_id: str) -> Dict[str, Any]:
        """Raise NotFoundError if graph isn't in the workspace list."""
        graph = self._workspace.find_graph(graph_id)
        if not graph:
            raise NotFoundError(f"Graph not found: {graph_id}")
        return graph

    def require_session(self) -> EditorSession:
        """Raise ValidationError if no graph is open for editing."""
        session = self._workspace.session
        if session is None or not session.selected:
            raise ValidationError("Select or create a graph first.")
        return session

    def require_node_exists(self, node_id: str) -> Dict[str, Any]:
        """Raise NotFoundError if node doesn't exist in the open graph."""
        session = self.require_session()
        node = next((n for n in session.nodes if n.get("id") == node_id), None)
        if not node:
            raise NotFoundError(f"Node not found: {node_id}")
        return node

    @staticmethod
    def unwrap(result: ActionResult) -> Any:
        """Return the value of a successful action or raise the matching domain error.

        Backend failures keep their concrete type (and HTTP status mapping) but
        carry the user-facing message the session composed.
        """
        if result.ok:
            return result.value
        cause = result.cause
        if isinstance(cause, PersistenceError):
            raise type(cause)(result.error, status=cause.status, data=cause.data)
        raise ValidationError(result.error)
