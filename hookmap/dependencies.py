from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Depends

from hookmap.config import settings
from hookmap.backend.factory import get_graph_backend
from hookmap.backend.interface import GraphBackend
from hookmap.registry.interface import NodeRegistry
from hookmap.registry.memory import build_default_registry
from hookmap.scheduling import AsyncioScheduler, Scheduler
from hookmap.application.usage_monitor import UsageMonitor
from hookmap.application.workspace import GraphWorkspace
from hookmap.application.graph_access_service import GraphAccessService
from hookmap.application.graph_validation_service import GraphValidationService


@lru_cache(maxsize=1)
def get_backend() -> GraphBackend:
    return get_graph_backend()


@lru_cache(maxsize=1)
def get_registry() -> NodeRegistry:
    return build_default_registry()


@lru_cache(maxsize=1)
def get_scheduler() -> Scheduler:
    return AsyncioScheduler()


@lru_cache(maxsize=1)
def get_usage_monitor() -> UsageMonitor:
    return UsageMonitor(
        backend=get_backend(),
        scheduler=get_scheduler(),
        interval_ms=settings.USAGE_POLL_INTERVAL_MS,
        default_limit=settings.DEFAULT_USAGE_LIMIT,
    )


def get_graph_validation_service() -> GraphValidationService:
    return GraphValidationService()


@lru_cache(maxsize=1)
def get_workspace() -> GraphWorkspace:
    return GraphWorkspace(
        backend=get_backend(),
        registry=get_registry(),
        scheduler=get_scheduler(),
        validator=get_graph_validation_service(),
        usage=get_usage_monitor(),
        autosave_delay_ms=settings.AUTOSAVE_DELAY_MS,
        trigger_type=settings.TRIGGER_NODE_TYPE,
        env=dict(os.environ),
    )


def get_graph_access_service(workspace: GraphWorkspace = Depends(get_workspace)) -> GraphAccessService:
    return GraphAccessService(workspace=workspace)
