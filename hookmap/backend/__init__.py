from .interface import GraphBackend
from .http import HttpGraphBackend
from .memory import InMemoryGraphBackend

__all__ = ["GraphBackend", "HttpGraphBackend", "InMemoryGraphBackend"]
