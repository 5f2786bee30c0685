"""
Endpoints driving the open editing session.

Each endpoint forwards to ``EditorSession``; rejected actions surface through
the domain error handlers registered in ``hookmap.main``.
"""
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from hookmap.schemas.api_schemas import (
    ChangeBatch,
    Connection,
    ConnectionCheck,
    NodeCreate,
    NodeDataPatch,
    PaletteOptionResponse,
    PauseRequest,
    SessionStateResponse,
)
from hookmap.dependencies import get_graph_access_service
from hookmap.application.editor_session import EditorSession
from hookmap.application.graph_access_service import GraphAccessService

router = APIRouter()


def state_response(session: EditorSession) -> SessionStateResponse:
    return SessionStateResponse(**asdict(session.state()))

@router.get("/session", response_model=SessionStateResponse)
async def get_session_state(
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Current state of the open graph: dirty flag, deploy visibility, definition.
    """
    return state_response(access_svc.require_session())

@router.post("/session/nodes", status_code=201)
async def add_node(
    node_data: NodeCreate,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
) -> Dict[str, Any]:
    """
    Add a node, subject to the per-graph instance cap of its type.
    """
    session = access_svc.require_session()
    position = node_data.position.model_dump() if node_data.position else None
    if node_data.from_palette:
        result = session.add_node_from_palette(node_data.type, position)
    else:
        result = session.add_node(node_data.type, node_data.data, position)
    return access_svc.unwrap(result)

@router.patch("/session/nodes/{node_id}/data")
async def update_node_data(
    node_id: str,
    body: NodeDataPatch,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
) -> Dict[str, Any]:
    access_svc.require_node_exists(node_id)
    session = access_svc.require_session()
    return access_svc.unwrap(session.update_node_data(node_id, body.patch))

@router.post("/session/node-changes", response_model=SessionStateResponse)
async def apply_node_changes(
    batch: ChangeBatch,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Apply editor node changes (moves, removals, additions) as one batch.
    """
    session = access_svc.require_session()
    access_svc.unwrap(session.apply_node_changes(batch.changes))
    return state_response(session)

@router.post("/session/edges", status_code=201)
async def connect(
    connection: Connection,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
) -> Optional[Dict[str, Any]]:
    """
    Connect two nodes. A duplicate connection is ignored and returns null.
    """
    session = access_svc.require_session()
    return access_svc.unwrap(session.connect(connection.as_edge()))

@router.post("/session/connection-check", response_model=ConnectionCheck)
async def check_connection(
    connection: Connection,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    session = access_svc.require_session()
    check = session.check_connection(connection.as_edge())
    return ConnectionCheck(ok=check.ok, reason=check.reason)

@router.post("/session/edge-changes", response_model=SessionStateResponse)
async def apply_edge_changes(
    batch: ChangeBatch,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    session = access_svc.require_session()
    access_svc.unwrap(session.apply_edge_changes(batch.changes))
    return state_response(session)

@router.post("/session/save", response_model=SessionStateResponse)
async def save(
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Save the open graph; a deployment whose trigger was removed is torn down.
    """
    session = access_svc.require_session()
    access_svc.unwrap(await session.save())
    return state_response(session)

@router.post("/session/deploy", response_model=SessionStateResponse)
async def deploy(
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Save if needed, compile and activate the open graph.
    """
    session = access_svc.require_session()
    access_svc.unwrap(await session.deploy())
    return state_response(session)

@router.post("/session/revert", response_model=SessionStateResponse)
async def revert(
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    session = access_svc.require_session()
    access_svc.unwrap(session.revert())
    return state_response(session)

@router.post("/session/pause", response_model=SessionStateResponse)
async def set_paused(
    body: PauseRequest,
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    """
    Pause or resume the triggers of a deployed graph.
    """
    session = access_svc.require_session()
    access_svc.unwrap(await session.set_paused(body.paused))
    return state_response(session)

@router.get("/session/palette", response_model=List[PaletteOptionResponse])
async def palette(
    q: str = Query("", description="Case-insensitive filter on label or type"),
    access_svc: GraphAccessService = Depends(get_graph_access_service),
):
    session = access_svc.require_session()
    return [PaletteOptionResponse(**asdict(option)) for option in session.palette(q)]
