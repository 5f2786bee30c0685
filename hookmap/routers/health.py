"""
Health check endpoints for the API.
"""
from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime

from hookmap.config import settings
from hookmap.dependencies import get_backend, get_workspace
from hookmap.backend.interface import GraphBackend
from hookmap.application.workspace import GraphWorkspace

router = APIRouter()

@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    Returns API status and version information.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

@router.get("/health/backend")
async def backend_health(
    backend: GraphBackend = Depends(get_backend)
) -> Dict[str, Any]:
    """
    Check that the graph backend answers.
    Uses the usage endpoint since it is cheap and needs no graph id.
    """
    try:
        usage = await backend.get_usage()
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "backend_type": settings.BACKEND_TYPE,
            "usage": usage,
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "timestamp": datetime.now().isoformat(),
            "backend_type": settings.BACKEND_TYPE,
            "error": str(e)
        }

@router.get("/health/detailed")
async def detailed_health(
    backend: GraphBackend = Depends(get_backend),
    workspace: GraphWorkspace = Depends(get_workspace),
) -> Dict[str, Any]:
    """
    Detailed health check of all system components.
    """
    backend_check = await backend_health(backend)
    basic_health = await health_check()
    session = workspace.session

    return {
        "status": backend_check["status"],
        "timestamp": datetime.now().isoformat(),
        "api": basic_health,
        "backend": backend_check,
        "workspace": {
            "graphs": len(workspace.graphs),
            "open_graph": session.graph_id if session else None,
            "autosave_pending": session.autosave_pending if session else False,
        },
        "config": {
            "backend_type": settings.BACKEND_TYPE,
            "autosave_delay_ms": settings.AUTOSAVE_DELAY_MS,
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG
        }
    }
