"""
Test configuration and fixtures for hookmap tests.
"""
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from hookmap.main import app
from hookmap.application.editor_session import EditorSession
from hookmap.application.usage_monitor import UsageMonitor
from hookmap.application.workspace import GraphWorkspace
from hookmap.backend.memory import InMemoryGraphBackend
from hookmap.dependencies import get_backend, get_usage_monitor, get_workspace
from hookmap.domain.events import event_publisher
from hookmap.registry.memory import build_default_registry
from hookmap.scheduling import ManualScheduler

TRANSFER_ABI = {
    "type": "event",
    "name": "Transfer",
    "inputs": [
        {"name": "from", "type": "address", "indexed": True},
        {"name": "to", "type": "address", "indexed": True},
        {"name": "value", "type": "uint256", "indexed": False},
    ],
}


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def trigger_data(**overrides):
    data = {
        "networkKey": "eth-mainnet",
        "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "eventAbi": json.dumps(TRANSFER_ABI),
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def reset_publisher():
    """Each test starts and ends with no event subscribers."""
    event_publisher.clear_subscribers()
    yield
    event_publisher.clear_subscribers()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def backend():
    return InMemoryGraphBackend(usage_limit=100)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def usage(backend, scheduler):
    return UsageMonitor(backend=backend, scheduler=scheduler, interval_ms=30000)


@pytest.fixture
def graph_record(backend):
    """A freshly created DRAFT graph stored in the in-memory backend."""
    return run(backend.create_graph("Transfers"))


@pytest.fixture
def make_session(backend, registry, scheduler, usage):
    """Factory building a loaded session for a backend record."""

    def _make(record, prefetch=True, env=None):
        session = EditorSession(
            graph=record,
            backend=backend,
            registry=registry,
            scheduler=scheduler,
            autosave_delay_ms=2000,
            usage=usage,
            env=env,
        )
        run(session.load(prefetch_deploy_state=prefetch))
        return session

    return _make


@pytest.fixture
def session(make_session, graph_record):
    return make_session(graph_record)


@pytest.fixture
def workspace(backend, registry, scheduler, usage):
    return GraphWorkspace(
        backend=backend,
        registry=registry,
        scheduler=scheduler,
        usage=usage,
        autosave_delay_ms=2000,
    )


@pytest.fixture
def client(workspace, backend, usage):
    """Test client wired to an in-memory workspace."""
    app.dependency_overrides[get_workspace] = lambda: workspace
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_usage_monitor] = lambda: usage
    yield TestClient(app)
    app.dependency_overrides.clear()
