from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from hookmap.domain.entities import DeployState, GraphDefinition, GraphRecord, UsageEntity


class GraphBackend(ABC):
    """
    Abstract interface for the remote graph service: storage, compile/deploy and usage.
    """

    @abstractmethod
    async def list_graphs(self) -> List[GraphRecord]:
        """Return every graph record visible to the caller."""
        pass

    @abstractmethod
    async def create_graph(self, name: str) -> GraphRecord:
        """
        Create a graph with an empty definition in DRAFT status.

        Args:
            name: Display name of the graph

        Returns:
            The created graph record
        """
        pass

    @abstractmethod
    async def delete_graph(self, graph_id: str) -> None:
        pass

    @abstractmethod
    async def save_graph(self, graph_id: str, name: str, definition: GraphDefinition,
                         status: str) -> GraphRecord:
        """
        Persist a full definition and bump the graph version.

        Returns:
            The updated graph record
        """
        pass

    @abstractmethod
    async def autosave(self, graph_id: str, name: str, definition: GraphDefinition,
                       status: str) -> Optional[GraphRecord]:
        """
        Persist a definition without a version bump.

        Returns:
            The updated graph record, or None on any failure
        """
        pass

    @abstractmethod
    async def fetch_deploy_state(self, graph_id: str) -> DeployState:
        pass

    @abstractmethod
    async def compile_graph(self, graph_id: str) -> Dict[str, Any]:
        """
        Provision (or deprovision) remote dependencies from the saved definition.
        """
        pass

    @abstractmethod
    async def pause_graph(self, graph_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def resume_graph(self, graph_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_usage(self) -> UsageEntity:
        pass

    async def aclose(self) -> None:
        """Release network resources, if any."""
        return None
