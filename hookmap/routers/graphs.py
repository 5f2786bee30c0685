from fastapi import APIRouter, Depends, Query
from hookmap.schemas.api_schemas import (
    GraphCreate,
    GraphDeleteResponse,
    GraphSummary,
    SessionStateResponse,
)
from hookmap.dependencies import get_workspace, get_graph_access_service
from hookmap.application.workspace import GraphWorkspace
from hookmap.application.graph_access_service import GraphAccessService
from hookmap.routers.session import state_response
from typing import Any, Dict, List, Mapping

router = APIRouter()


def to_summary(graph: Mapping[str, Any]) -> GraphSummary:
    return GraphSummary(
        graph_id=str(graph["id"]),
        name=graph.get("name", ""),
        status=graph.get("status") or "DRAFT",
        version=graph.get("version"),
        compiled_at=graph.get("compiledAt"),
        deploy_fingerprint=graph.get("deployFingerprint"),
    )

@router.get("/graphs", response_model=List[GraphSummary])
async def list_graphs(
    refresh: bool = Query(True, description="Reload the list from the backend first"),
    workspace: GraphWorkspace = Depends(get_workspace),
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    List the graphs of the account, newest first.
    """
    if refresh:
        access_svc.unwrap(await workspace.refresh())
    return [to_summary(graph) for graph in workspace.graphs]

@router.post("/graphs", response_model=GraphSummary, status_code=201)
async def create_graph(
    graph_data: GraphCreate,
    workspace: GraphWorkspace = Depends(get_workspace),
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Create an empty DRAFT graph and open it for editing.
    """
    session = access_svc.unwrap(await workspace.create_graph(graph_data.name))
    return to_summary(session.graph)

@router.get("/graphs/{graph_id}")
async def get_graph(
    graph_id: str,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
) -> Dict[str, Any]:
    """
    Get the stored record of a graph, definition included.
    """
    graph = access_svc.require_graph_exists(graph_id)
    return {**to_summary(graph).model_dump(), "definition": graph.get("definition")}

@router.post("/graphs/{graph_id}/open", response_model=SessionStateResponse)
async def open_graph(
    graph_id: str,
    workspace: GraphWorkspace = Depends(get_workspace),
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Open a graph for editing; an unknown id opens the first graph instead.
    """
    session = access_svc.unwrap(await workspace.open_graph(graph_id))
    return state_response(session)

@router.delete("/graphs/{graph_id}", response_model=GraphDeleteResponse)
async def delete_graph(
    graph_id: str,
    workspace: GraphWorkspace = Depends(get_workspace),
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Delete a graph; when it was open, the first remaining graph is opened.
    """
    access_svc.require_graph_exists(graph_id)
    deleted = access_svc.unwrap(await workspace.delete_graph(graph_id))
    return GraphDeleteResponse(success=True, graph_id=deleted)
