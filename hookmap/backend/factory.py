from hookmap.backend.interface import GraphBackend
from hookmap.backend.http import HttpGraphBackend
from hookmap.backend.memory import InMemoryGraphBackend
from hookmap.config import settings

def get_graph_backend() -> GraphBackend:
    """
    Factory function to create the appropriate backend implementation
    based on environment variables.

    Returns:
        A backend implementation (HTTP or in-memory)
    """
    backend_type = settings.BACKEND_TYPE.lower()

    if backend_type == "memory":
        return InMemoryGraphBackend(
            usage_limit=settings.DEFAULT_USAGE_LIMIT,
            trigger_type=settings.TRIGGER_NODE_TYPE,
        )

    if not settings.BACKEND_URL:
        raise ValueError("BACKEND_URL must be set when using the HTTP backend")

    return HttpGraphBackend(
        base_url=settings.BACKEND_URL,
        token=settings.BACKEND_TOKEN,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )
